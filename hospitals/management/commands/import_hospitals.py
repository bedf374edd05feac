# hospitals/management/commands/import_hospitals.py
"""
Load the hospital directory used by the emergency request autocomplete.

USAGE:
    python manage.py import_hospitals                  # built-in Delhi government hospitals
    python manage.py import_hospitals hospitals.xlsx   # Excel or CSV with name/address columns
"""
import os

import pandas as pd
from django.core.management.base import BaseCommand, CommandError

from hospitals.utils import DELHI_HOSPITALS, upsert_hospitals

REQUIRED_COLUMNS = ['name', 'address']


class Command(BaseCommand):
    help = 'Import hospitals into the directory (defaults to the built-in Delhi list)'

    def add_arguments(self, parser):
        parser.add_argument(
            'file',
            nargs='?',
            type=str,
            help='Path to an Excel or CSV file containing hospital data'
        )

    def _coordinate(self, row, column, line):
        if column not in row or pd.isna(row[column]):
            return None
        try:
            return float(row[column])
        except ValueError:
            self.stdout.write(self.style.WARNING(
                f"Row {line}: invalid {column} {row[column]!r}, leaving it blank"
            ))
            return None

    def _rows_from_file(self, path):
        if not os.path.exists(path):
            raise CommandError(f'File not found: {path}')

        if path.lower().endswith('.csv'):
            df = pd.read_csv(path, dtype=str)
        else:
            df = pd.read_excel(path, dtype=str)
        df.columns = [str(c).strip().lower() for c in df.columns]

        missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing_columns:
            raise CommandError(f'Missing columns: {", ".join(missing_columns)}')

        self.stdout.write(f"Found {len(df)} hospitals in {path}")

        rows = []
        for index, row in df.iterrows():
            line = index + 2  # header is line 1
            if pd.isna(row['name']):
                continue
            rows.append({
                'name': str(row['name']).strip(),
                'address': str(row['address']).strip() if pd.notna(row['address']) else '',
                'phone': str(row['phone']).strip() if 'phone' in row and pd.notna(row['phone']) else '',
                'latitude': self._coordinate(row, 'latitude', line),
                'longitude': self._coordinate(row, 'longitude', line),
            })
        return rows

    def handle(self, *args, **options):
        path = options.get('file')

        if path:
            rows = self._rows_from_file(path)
        else:
            self.stdout.write('No file given, loading the built-in Delhi hospital list')
            rows = DELHI_HOSPITALS

        created, updated = upsert_hospitals(rows)

        self.stdout.write(self.style.SUCCESS(
            f'Import complete! Created: {created}, Updated: {updated}'
        ))
