import csv
import io

from django.utils import timezone

# (key, header, value getter) in export order
EXPORT_COLUMNS = [
    ('row_id', 'Row ID', lambda s: s.row_id),
    ('full_name', 'Full Name', lambda s: s.full_name),
    ('email', 'Email', lambda s: s.email),
    ('whatsapp_no', 'WhatsApp No', lambda s: s.whatsapp_no),
    ('city', 'City', lambda s: s.city),
    ('courses', 'Courses', lambda s: '; '.join(s.course_names)),
    ('batch_code', 'Batch Code', lambda s: s.batch_code),
    ('payment_mode', 'Payment Mode', lambda s: s.payment_mode),
    ('payment_status', 'Payment Status', lambda s: s.payment_status),
    ('amount_paid', 'Amount Paid', lambda s: s.amount_paid),
    ('pending_amount', 'Pending Amount', lambda s: s.pending_amount),
    ('created_at', 'Date Added', lambda s: timezone.localtime(s.created_at).strftime('%d/%m/%Y')),
]

COLUMN_KEYS = [key for key, _, _ in EXPORT_COLUMNS]


class UnknownColumnError(ValueError):
    pass


def select_columns(keys=None):
    """Returns the export columns for `keys`, in canonical order. None means all."""
    if keys is None:
        return list(EXPORT_COLUMNS)
    unknown = [k for k in keys if k not in COLUMN_KEYS]
    if unknown:
        raise UnknownColumnError(f"Unknown export column(s): {', '.join(unknown)}")
    return [col for col in EXPORT_COLUMNS if col[0] in keys]


def students_to_csv(students, columns):
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow([header for _, header, _ in columns])
    for student in students:
        writer.writerow([getter(student) for _, _, getter in columns])
    return buffer.getvalue()


def export_filename(today=None):
    today = today or timezone.localdate()
    return f"students_export_{today.isoformat()}.csv"
