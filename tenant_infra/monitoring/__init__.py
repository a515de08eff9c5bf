"""Observability unit: alarms, notification topic and dashboard."""

from .monitoring_stack import MonitoringStack

__all__ = ["MonitoringStack"]
