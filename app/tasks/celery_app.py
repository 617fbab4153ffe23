"""
Configuración de Celery para tareas asíncronas.
"""

from celery import Celery
from celery.schedules import crontab

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "consultorios",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/Argentina/Buenos_Aires",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    # Ejecuta las tareas en el mismo proceso (tests, desarrollo sin Redis)
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    beat_schedule={
        "daily-appointment-reminders": {
            "task": "email.send_daily_reminders",
            "schedule": crontab(hour=18, minute=0),
        },
    },
)

# Auto-descubrir tareas en app/tasks/
celery_app.autodiscover_tasks(["app.tasks"], related_name="email_tasks")
