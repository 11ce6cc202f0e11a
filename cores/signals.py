from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from certificates.models import Certificate
from courses.models import Course
from students.models import Student

from . import notifier
from .models import ChangeEvent


def _serialize(instance):
    # Imported lazily: the serializers pull in models from several apps
    from certificates.serializers import CertificateSerializer
    from courses.serializers import CourseSerializer
    from students.serializers import StudentSerializer

    serializers_by_model = {
        Student: StudentSerializer,
        Certificate: CertificateSerializer,
        Course: CourseSerializer,
    }
    return serializers_by_model[type(instance)](instance).data


def publish(table, event, object_id, payload):
    change = ChangeEvent.objects.create(
        table=table,
        event=event,
        object_id=str(object_id),
        payload=payload,
    )
    notifier.deliver(change)
    return change


def publish_rows(model, pks):
    """Publishes UPDATE events for rows changed through queryset.update()."""
    for instance in model.objects.filter(pk__in=list(pks)):
        publish(model._meta.db_table, ChangeEvent.Event.UPDATE, instance.pk, _serialize(instance))


# Events are written once the surrounding transaction commits so the payload
# includes related rows saved after the parent (e.g. a student's enrollments).
@receiver(post_save, sender=Student)
@receiver(post_save, sender=Certificate)
@receiver(post_save, sender=Course)
def record_save(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    event = ChangeEvent.Event.INSERT if created else ChangeEvent.Event.UPDATE

    def _publish():
        fresh = sender.objects.filter(pk=instance.pk).first()
        if fresh is not None:
            publish(sender._meta.db_table, event, fresh.pk, _serialize(fresh))

    transaction.on_commit(_publish)


@receiver(post_delete, sender=Student)
@receiver(post_delete, sender=Certificate)
@receiver(post_delete, sender=Course)
def record_delete(sender, instance, **kwargs):
    pk = instance.pk
    transaction.on_commit(
        lambda: publish(sender._meta.db_table, ChangeEvent.Event.DELETE, pk, {"id": pk})
    )
