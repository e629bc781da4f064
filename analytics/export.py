"""
CSV export of analytics results.

The export reuses the cached query results; it only reshapes them into
rows, with a short '#'-prefixed metadata header.
"""

import csv
import io
import json

from django.utils import timezone

from reports.models import ReportCategory

from .metrics import HOUR_MS
from .trends import compare_periods

EXPORT_TITLES = {
    'trends': 'Trend Analysis',
    'status': 'Status Distribution',
    'drivers': 'Driver Performance',
    'resolution': 'Resolution Times',
}


def _hours(value_ms):
    return '' if value_ms is None else round(value_ms / HOUR_MS, 2)


def _trend_rows(data, include_details):
    headers = ['Date', 'Total_Incidents'] + [category.title() for category in ReportCategory.ALL]
    if include_details:
        headers += ['Percentage_Change', 'Trend_Direction']

    rows = []
    previous = None
    for day in data['dailyTrends']:
        categories = day.get('categories', {})
        row = [day['date'], day['count']] + [categories.get(category, 0) for category in ReportCategory.ALL]
        if include_details:
            if previous is None:
                row += [0.0, 'stable']
            else:
                change = compare_periods(day['count'], previous)
                row += [change['percentageChange'], change['trend']]
            previous = day['count']
        rows.append(row)
    return headers, rows


def _status_rows(data, include_details):
    headers = ['Status', 'Count', 'Percentage']
    rows = [[status, entry['count'], entry['percentage']] for status, entry in data['summary'].items()]
    return headers, rows


def _driver_rows(data, include_details):
    headers = ['Driver_ID', 'Assigned_Reports', 'Completed_Reports', 'Completion_Rate', 'Avg_Resolution_Hours']
    if include_details:
        headers += ['Rejected_Reports', 'In_Progress_Reports']

    rows = []
    for entry in data['metrics']:
        row = [
            entry['driverId'],
            entry['totalAssigned'],
            entry['completed'],
            entry['completionRate'],
            _hours(entry['avgResolutionMs']),
        ]
        if include_details:
            row += [entry['rejected'], entry['inProgress']]
        rows.append(row)
    return headers, rows


def _resolution_rows(data, include_details):
    headers = ['Category', 'Status', 'Count', 'Avg_Hours', 'Median_Hours']
    if include_details:
        headers += ['Min_Hours', 'Max_Hours']

    rows = []
    for entry in data['byCategory']:
        row = [entry['category'], entry['status'], entry['count'], _hours(entry['avgMs']), _hours(entry['medianMs'])]
        if include_details:
            row += [_hours(entry['minMs']), _hours(entry['maxMs'])]
        rows.append(row)
    return headers, rows


ROW_BUILDERS = {
    'trends': _trend_rows,
    'status': _status_rows,
    'drivers': _driver_rows,
    'resolution': _resolution_rows,
}


def export_filename(data_type, window):
    today = timezone.now().date().isoformat()
    return f"cleancity_{data_type}_{today}_{window.start_date.isoformat()}_to_{window.end_date.isoformat()}.csv"


def build_csv(data_type, data, window, filters=None, include_details=False):
    headers, rows = ROW_BUILDERS[data_type](data, include_details)

    buffer = io.StringIO()
    buffer.write('# CleanCity Analytics Export\n')
    buffer.write(f"# Data Type: {EXPORT_TITLES[data_type]}\n")
    buffer.write(f"# Exported At: {timezone.now().isoformat()}\n")
    buffer.write(f"# Date Range: {window.start_date.isoformat()} to {window.end_date.isoformat()}\n")
    if filters:
        buffer.write(f"# Filters: {json.dumps(filters, sort_keys=True)}\n")
    buffer.write('#\n')

    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()
