"""Reports model module."""
from models.reports.monthly import (
    build_monthly_report,
    generate_monthly_report,
    generate_commission_report,
    resolve_report_period,
    send_monthly_report
)

__all__ = [
    'build_monthly_report',
    'generate_monthly_report',
    'generate_commission_report',
    'resolve_report_period',
    'send_monthly_report'
]
