from decimal import Decimal

from rest_framework import serializers
from .models import Payment

class PaymentSerializer(serializers.ModelSerializer):
    recorded_by_email = serializers.CharField(source='recorded_by.email', read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'student', 'amount', 'mode', 'reference', 'note', 'recorded_by_email', 'recorded_at']
        read_only_fields = ['student', 'recorded_at']
        extra_kwargs = {
            # Checked in validate_reference so blank references stay allowed
            'reference': {'validators': []},
        }

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        return value

    def validate_reference(self, value):
        value = (value or '').strip()
        if not value:
            return None
        if Payment.objects.filter(reference=value).exists():
            raise serializers.ValidationError("This payment reference has already been used.")
        return value

    def validate(self, attrs):
        student = self.context['student']
        if student.pending_amount > 0 and attrs['amount'] > student.pending_amount:
            raise serializers.ValidationError({
                "amount": f"Amount exceeds the pending balance of {student.pending_amount}."
            })
        return attrs

    def create(self, validated_data):
        student = self.context['student']
        payment = Payment.objects.create(student=student, **validated_data)
        student.record_payment(Decimal(payment.amount))
        student.payment_mode = payment.mode
        student.save(update_fields=['amount_paid', 'pending_amount', 'payment_status', 'payment_mode', 'updated_at'])
        return payment
