from django.core.management.base import BaseCommand

from courses.models import Course, DEFAULT_COURSES

class Command(BaseCommand):
    help = 'Creates the default course catalog (existing courses are left untouched)'

    def handle(self, *args, **options):
        created_count = 0
        for name in DEFAULT_COURSES:
            _, created = Course.objects.get_or_create(name=name)
            if created:
                created_count += 1

        self.stdout.write(self.style.SUCCESS(f"Seeded {created_count} courses ({Course.objects.count()} total)"))
