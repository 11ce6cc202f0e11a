from rest_framework import serializers

from courses.models import Course
from .models import Student, Enrollment

class EnrollmentSerializer(serializers.ModelSerializer):
    course = serializers.CharField(source='course.name', read_only=True)
    course_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Enrollment
        fields = ['id', 'course', 'course_id', 'position', 'sequence', 'batch_code', 'enrolled_at']

def resolve_courses(names):
    """Maps course names to Course rows, keeping the given order and dropping repeats."""
    courses = []
    missing = []
    for name in names:
        name = name.strip()
        course = Course.objects.filter(name__iexact=name).first()
        if course is None:
            missing.append(name)
        elif course not in courses:
            courses.append(course)
    if missing:
        raise serializers.ValidationError(f"Unknown course(s): {', '.join(missing)}")
    return courses

class StudentSerializer(serializers.ModelSerializer):
    # Map frontend 'timestamp' to backend 'created_at'
    timestamp = serializers.DateTimeField(source='created_at', read_only=True)
    course = serializers.CharField(read_only=True)
    batch_code = serializers.CharField(read_only=True)
    enrollments = EnrollmentSerializer(many=True, read_only=True)

    # Write side: course names in order, optional {course name: batch code} overrides
    courses = serializers.ListField(child=serializers.CharField(), write_only=True, required=False)
    batch_codes = serializers.DictField(child=serializers.CharField(max_length=20), write_only=True, required=False)

    class Meta:
        model = Student
        fields = [
            'id', 'row_id', 'timestamp', 'full_name', 'email', 'whatsapp_no', 'city',
            'course', 'courses', 'batch_code', 'batch_codes', 'enrollments',
            'payment_mode', 'payment_status', 'amount_paid', 'pending_amount',
            'certificate_status', 'updated_at',
        ]
        read_only_fields = ['row_id', 'updated_at']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['courses'] = instance.course_names
        return data

    def validate_email(self, value):
        return value.strip().lower()

    def validate_full_name(self, value):
        return value.strip()

    def validate_amount_paid(self, value):
        if value < 0:
            raise serializers.ValidationError("Amount cannot be negative.")
        return value

    def validate_pending_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Amount cannot be negative.")
        return value

    def validate_courses(self, value):
        courses = resolve_courses(value)
        if not courses:
            raise serializers.ValidationError("Select at least one course.")
        return courses

    def validate(self, attrs):
        if self.instance is None and not attrs.get('courses'):
            raise serializers.ValidationError({"courses": "Select at least one course."})

        status = attrs.get('payment_status', getattr(self.instance, 'payment_status', None))
        if status == Student.PaymentStatus.PAID:
            attrs['pending_amount'] = 0
        return attrs

    def create(self, validated_data):
        courses = validated_data.pop('courses')
        batch_codes = validated_data.pop('batch_codes', {})
        student = Student.objects.create(**validated_data)
        student.set_courses(courses, batch_codes)
        return student

    def update(self, instance, validated_data):
        courses = validated_data.pop('courses', None)
        batch_codes = validated_data.pop('batch_codes', {})
        instance = super().update(instance, validated_data)
        if courses is not None:
            instance.set_courses(courses, batch_codes)
        elif batch_codes:
            instance.set_courses([e.course for e in instance.enrollments.select_related('course')], batch_codes)
        return instance

class RegistrationSerializer(serializers.Serializer):
    """Public self-registration form."""
    PAYMENT_MODES = [
        Student.PaymentMode.UPI_APPS,
        Student.PaymentMode.WEBSITE,
        Student.PaymentMode.OTHERS,
    ]
    PAYMENT_STATUSES = [
        Student.PaymentStatus.PAID,
        Student.PaymentStatus.PARTIAL,
    ]

    full_name = serializers.CharField(min_length=2, max_length=100)
    whatsapp_no = serializers.CharField(min_length=10, max_length=15)
    email = serializers.EmailField()
    course = serializers.CharField()
    city = serializers.CharField(min_length=2, max_length=50)
    payment_mode = serializers.ChoiceField(choices=PAYMENT_MODES, default=Student.PaymentMode.UPI_APPS)
    payment_status = serializers.ChoiceField(choices=PAYMENT_STATUSES, default=Student.PaymentStatus.PAID)
    amount_paid = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    pending_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_whatsapp_no(self, value):
        return value.strip()

    def validate_course(self, value):
        course = Course.objects.filter(name__iexact=value.strip()).first()
        if course is None:
            raise serializers.ValidationError("Please select a course.")
        return course

    def validate(self, attrs):
        attrs['full_name'] = attrs['full_name'].strip()
        attrs['city'] = attrs['city'].strip()
        if attrs['payment_status'] == Student.PaymentStatus.PAID:
            attrs['pending_amount'] = 0
        return attrs

    def duplicate_field(self):
        """Name of the contact field that is already registered, if any."""
        email = self.validated_data['email']
        whatsapp_no = self.validated_data['whatsapp_no']
        if Student.objects.filter(email__iexact=email).exists():
            return 'email address'
        if Student.objects.filter(whatsapp_no=whatsapp_no).exists():
            return 'WhatsApp number'
        return None

    def create(self, validated_data):
        course = validated_data.pop('course')
        student = Student.objects.create(**validated_data)
        # Batch code is assigned from the course sequence; admins may override it later
        student.enroll(course)
        return student

class StudentSummarySerializer(serializers.ModelSerializer):
    course = serializers.CharField(read_only=True)

    class Meta:
        model = Student
        fields = ['id', 'row_id', 'full_name', 'course', 'payment_status', 'created_at']

class BulkIdsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)

class BulkCertificateStatusSerializer(BulkIdsSerializer):
    status = serializers.ChoiceField(choices=Student.CertificateStatus.choices)
