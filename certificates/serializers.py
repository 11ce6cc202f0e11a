from rest_framework import serializers

from .models import Certificate, CertificateSettings

class CertificateSerializer(serializers.ModelSerializer):
    student_row_id = serializers.IntegerField(source='student.row_id', read_only=True)
    image_url = serializers.SerializerMethodField()

    class Meta:
        model = Certificate
        fields = [
            'id',
            'certificate_id',
            'student',
            'student_row_id',
            'full_name',
            'course',
            'issue_date',
            'status',
            'image_url',
            'created_at',
        ]
        read_only_fields = fields

    def get_image_url(self, obj):
        if not obj.image:
            return None
        request = self.context.get('request')
        if request is not None:
            return request.build_absolute_uri(obj.image.url)
        return obj.image.url

class IssueCertificateSerializer(serializers.Serializer):
    student = serializers.IntegerField()
    # Course name; defaults to the student's primary course
    course = serializers.CharField(required=False, allow_blank=True)
    issue_date = serializers.DateField(required=False)

class VerificationSerializer(serializers.ModelSerializer):
    """What the public verification page may see."""
    valid = serializers.BooleanField(source='is_valid', read_only=True)

    class Meta:
        model = Certificate
        fields = ['certificate_id', 'full_name', 'course', 'issue_date', 'status', 'valid']

class TextElementStyleSerializer(serializers.Serializer):
    top = serializers.FloatField(min_value=0, max_value=100)
    left = serializers.FloatField(min_value=0, max_value=100)
    fontSize = serializers.IntegerField(min_value=1, max_value=400)
    color = serializers.RegexField(r'^#[0-9A-Fa-f]{6}$', error_messages={'invalid': "Color must look like #RRGGBB."})
    fontWeight = serializers.ChoiceField(choices=[300, 400, 500, 600, 700])
    letterSpacing = serializers.FloatField(min_value=-20, max_value=100)
    textAlign = serializers.ChoiceField(choices=['left', 'center', 'right'])

class CertificateSettingsSerializer(serializers.ModelSerializer):
    name_style = TextElementStyleSerializer()
    date_style = TextElementStyleSerializer()
    certificate_id_style = TextElementStyleSerializer()
    institute_display_name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = CertificateSettings
        fields = [
            'institute_name', 'institute_display_name', 'email_subject', 'email_body_template',
            'show_certificate_id', 'name_style', 'date_style', 'certificate_id_style',
        ]

    def to_internal_value(self, data):
        # Style updates may name only the keys that changed; fill in the rest
        if self.instance is not None and hasattr(data, 'items'):
            data = dict(data.items())
            for key in ('name_style', 'date_style', 'certificate_id_style'):
                if isinstance(data.get(key), dict):
                    data[key] = {**getattr(self.instance, key), **data[key]}
        return super().to_internal_value(data)

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, dict(value) if isinstance(value, dict) else value)
        instance.save()
        return instance
