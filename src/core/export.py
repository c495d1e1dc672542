"""CSV export utilities."""
import csv

from django.http import HttpResponse


def rows_to_csv_response(rows, columns, filename):
    """Write an iterable of rows to a CSV HttpResponse.

    Args:
        rows: any iterable (dicts, dataclasses, model instances).
        columns: list of (key_or_callable, header_label) tuples.
            A string key is read with ``row[key]`` for dicts and
            ``getattr(row, key)`` otherwise; a callable receives the row.
        filename: download filename (without extension)
    """
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}.csv"'
    # UTF-8 BOM for Excel compatibility
    response.write("\ufeff")

    writer = csv.writer(response)
    writer.writerow([col[1] for col in columns])

    for row in rows:
        values = []
        for key, _ in columns:
            if callable(key):
                val = key(row)
            elif isinstance(row, dict):
                val = row.get(key, "")
            else:
                val = getattr(row, key, "")
            values.append(str(val) if val is not None else "")
        writer.writerow(values)

    return response
