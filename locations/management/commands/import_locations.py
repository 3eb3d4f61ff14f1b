"""
Management command to import target cities from a CSV file.
Usage: python manage.py import_locations cities.csv

Expected header: city,state,state_abbr,county,population,latitude,longitude,priority_rank
Rows are keyed on (city, state_abbr); existing cities are updated in place.
"""
import csv

from django.core.management.base import BaseCommand, CommandError
from locations.models import Location

REQUIRED_COLUMNS = ('city', 'state', 'state_abbr')
INT_COLUMNS = ('population', 'priority_rank')
FLOAT_COLUMNS = ('latitude', 'longitude')


def _parse_row(row):
    defaults = {
        'state': row['state'].strip(),
        'county': (row.get('county') or '').strip() or None,
    }
    for column in INT_COLUMNS:
        value = (row.get(column) or '').replace(',', '').strip()
        defaults[column] = int(value) if value else None
    for column in FLOAT_COLUMNS:
        value = (row.get(column) or '').strip()
        defaults[column] = float(value) if value else None
    return row['city'].strip(), row['state_abbr'].strip().upper(), defaults


class Command(BaseCommand):
    help = 'Create or update target cities from a CSV file'

    def add_arguments(self, parser):
        parser.add_argument('csv_path', help='Path to the CSV file')

    def handle(self, *args, **options):
        path = options['csv_path']
        try:
            with open(path, newline='', encoding='utf-8') as f:
                reader = csv.DictReader(f)
                missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
                if missing:
                    raise CommandError(f"Missing columns: {', '.join(missing)}")
                rows = list(reader)
        except FileNotFoundError:
            raise CommandError(f"File not found: {path}")

        created_count = updated_count = 0
        for line_no, row in enumerate(rows, start=2):
            try:
                city, state_abbr, defaults = _parse_row(row)
            except ValueError as e:
                raise CommandError(f"Line {line_no}: {e}")
            if not city or not state_abbr:
                self.stderr.write(f'Skipping line {line_no}: city and state_abbr are required')
                continue

            _, created = Location.objects.update_or_create(
                city=city,
                state_abbr=state_abbr,
                defaults=defaults,
            )
            if created:
                created_count += 1
            else:
                updated_count += 1

        self.stdout.write(self.style.SUCCESS(
            f'Imported {created_count + updated_count} cities ({created_count} created, {updated_count} updated).'
        ))
