from rest_framework import serializers
from .models import Course

class CourseSerializer(serializers.ModelSerializer):
    code = serializers.CharField(read_only=True)
    template_url = serializers.SerializerMethodField()
    total_students = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = ['id', 'name', 'short_name', 'code', 'template', 'template_url', 'total_students', 'created_at']
        read_only_fields = ['created_at']
        extra_kwargs = {
            'template': {'write_only': True, 'required': False},
            # Uniqueness is checked case-insensitively in validate_name
            'name': {'validators': []},
        }

    def get_template_url(self, obj):
        if not obj.template:
            return None
        request = self.context.get('request')
        if request is not None:
            return request.build_absolute_uri(obj.template.url)
        return obj.template.url

    def get_total_students(self, obj):
        return obj.enrollments.count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Course name cannot be blank.")
        duplicates = Course.objects.filter(name__iexact=value)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError("A course with this name already exists.")
        return value

    def validate_short_name(self, value):
        value = value.strip().upper()
        if value and not value.isalnum():
            raise serializers.ValidationError("Short name may only contain letters and digits.")
        return value

class CourseOptionSerializer(serializers.ModelSerializer):
    """Public list used by the registration form."""
    class Meta:
        model = Course
        fields = ['id', 'name']
