"""
Management command to run one research job from the command line.
Usage: python manage.py run_research --location 3 --page-type topic --topic roofing
"""
from django.core.management.base import BaseCommand, CommandError

from citypages_backend.exceptions import CityPagesError
from seo.content_generation import PAGE_TYPES
from seo.research import ResearchJobWorkflow


class Command(BaseCommand):
    help = 'Generate content for one city page and store it as a research job'

    def add_arguments(self, parser):
        parser.add_argument('--location', type=int, required=True, help='Location id')
        parser.add_argument('--page-type', required=True, choices=PAGE_TYPES)
        parser.add_argument('--topic', default=None)
        parser.add_argument('--neighborhood', default=None)

    def handle(self, *args, **options):
        try:
            outcome = ResearchJobWorkflow().run(
                location_id=options['location'],
                page_type=options['page_type'],
                topic=options['topic'],
                neighborhood=options['neighborhood'],
            )
        except CityPagesError as e:
            raise CommandError(e.message)

        self.stdout.write(self.style.SUCCESS(
            f'Research job {outcome.job.id} completed: "{outcome.content.title}" '
            f'({outcome.content.word_count} words, {outcome.content.questions_count} questions)'
        ))
