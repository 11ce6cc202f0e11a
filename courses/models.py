# academy_platform/courses/models.py
import re

from django.db import models

DEFAULT_COURSES = [
    'UI/UX Design',
    'Graphic Design',
    'Web Development',
    'Digital Marketing',
    'Interior Design',
    'Fashion Design',
    'Animation & VFX',
    'Photography',
]

class Course(models.Model):
    name = models.CharField(max_length=150, unique=True)
    short_name = models.CharField(max_length=10, blank=True, help_text="Used in batch codes and certificate IDs")
    # Certificate background for this course
    template = models.ImageField(upload_to='course_templates/', null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def code(self):
        return course_code(self.name, self.short_name)


def course_code(name, short_name=''):
    """Short upper-case code for a course: its short name, else the first three letters of its name."""
    if short_name:
        return short_name.strip().upper()
    letters = re.sub(r'[^A-Za-z]', '', name or '')
    return letters[:3].upper() or 'GEN'
