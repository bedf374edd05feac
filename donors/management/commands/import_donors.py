# donors/management/commands/import_donors.py
"""
Django management command to import donor data from Excel or CSV
Usage: python manage.py import_donors path/to/donors.xlsx
"""
import os

import pandas as pd
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from algorithms.blood_compatibility import parse_blood_type, InvalidBloodType
from donors.models import DonorProfile


def _text(value):
    if pd.isna(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _read_table(path):
    if path.lower().endswith('.csv'):
        return pd.read_csv(path, dtype=str)
    return pd.read_excel(path, dtype=str)


class Command(BaseCommand):
    help = 'Import donors from an Excel or CSV file (rows are matched by phone number)'

    def add_arguments(self, parser):
        parser.add_argument('file', type=str, help='Path to the .xlsx or .csv file')

    def handle(self, *args, **options):
        path = options['file']

        if not os.path.exists(path):
            raise CommandError(f'File not found: {path}')

        self.stdout.write(self.style.WARNING(f'Starting import from {path}...'))

        df = _read_table(path)
        df.columns = [str(c).strip().lower() for c in df.columns]
        self.stdout.write(f'Found {len(df)} rows')

        imported_count = 0
        updated_count = 0
        skipped_count = 0

        for index, row in df.iterrows():
            line = index + 2  # header is line 1

            full_name = _text(row.get('full_name', row.get('name')))
            phone = _text(row.get('phone', row.get('phone_number')))

            if not full_name or not phone:
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: Missing name or phone'))
                skipped_count += 1
                continue

            try:
                blood_type = parse_blood_type(_text(row.get('blood_type', row.get('blood_group'))))
            except InvalidBloodType as e:
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: {e}'))
                skipped_count += 1
                continue

            try:
                age = int(float(_text(row.get('age'))))
            except ValueError:
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid age'))
                skipped_count += 1
                continue

            last_donation = _text(row.get('last_donation_date'))
            if last_donation:
                try:
                    last_donation = pd.to_datetime(last_donation).date()
                except (ValueError, TypeError):
                    self.stdout.write(self.style.WARNING(f'Invalid date at row {line}, ignoring it'))
                    last_donation = None
            else:
                last_donation = None

            donor = DonorProfile.objects.filter(phone=phone).first()
            created = donor is None
            if created:
                donor = DonorProfile(phone=phone)

            donor.full_name = full_name
            donor.age = age
            donor.blood_type = blood_type
            donor.email = _text(row.get('email'))
            donor.address = _text(row.get('address'))
            donor.city = _text(row.get('city'))
            donor.state = _text(row.get('state'))
            donor.pincode = _text(row.get('pincode'))
            donor.medical_conditions = _text(row.get('medical_conditions'))
            donor.available_for_emergency = _text(row.get('available_for_emergency')).lower() in ('1', 'true', 'yes')
            if last_donation:
                donor.last_donation_date = last_donation

            try:
                donor.full_clean()
            except ValidationError as e:
                errors = '; '.join(f'{field}: {", ".join(msgs)}' for field, msgs in e.message_dict.items())
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: {errors}'))
                skipped_count += 1
                continue

            donor.save()

            if created:
                imported_count += 1
                self.stdout.write(f'Created: {donor.full_name} ({donor.blood_type})')
            else:
                updated_count += 1
                self.stdout.write(f'Updated: {donor.full_name} ({donor.blood_type})')

        self.stdout.write(
            self.style.SUCCESS(
                f'Import complete! Created: {imported_count}, '
                f'Updated: {updated_count}, Skipped: {skipped_count}'
            )
        )
