from django.urls import path
from .views import StudentPaymentListView, PaymentSummaryView

urlpatterns = [
    # The actual URLs will be: /api/students/<id>/payments/ and /api/payments/summary/
    path('students/<int:student_id>/payments/', StudentPaymentListView.as_view(), name='student-payments'),
    path('payments/summary/', PaymentSummaryView.as_view(), name='payment-summary'),
]
