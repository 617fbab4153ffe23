"""Esquema inicial: médicos, consultorios, asignaciones, turnos e historia clínica

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2025-11-03 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


userrole_enum = postgresql.ENUM('admin', 'doctor', 'patient', name='userrole', create_type=False)
status_enum = postgresql.ENUM(
    'pendiente', 'confirmada', 'completada', 'cancelada',
    name='appointmentstatus', create_type=False,
)
actortype_enum = postgresql.ENUM('admin', 'patient', 'doctor', name='actortype', create_type=False)
severity_enum = postgresql.ENUM('leve', 'moderado', 'grave', name='severity', create_type=False)

ENUMS = (userrole_enum, status_enum, actortype_enum, severity_enum)


def _clinical_columns() -> list[sa.Column]:
    """Columnas comunes a diagnósticos, recetas y estudios."""
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('medical_record_id', sa.Uuid(), sa.ForeignKey('medical_records.id'), nullable=True),
        sa.Column('patient_email', sa.String(length=255), nullable=False, index=True),
        sa.Column('patient_dni', sa.String(length=15), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), sa.ForeignKey('doctors.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    # ── Datos de referencia ──────────────────────────
    op.create_table(
        'doctors',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False,
                  comment="Nombre para mostrar: 'Dr. Nombre Apellido'"),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('specialty', sa.String(length=100), nullable=False, index=True),
        sa.Column('license_number', sa.String(length=30), nullable=False, unique=True,
                  comment='Matrícula profesional'),
        sa.Column('available_slots', sa.JSON(), nullable=True),
    )
    op.create_table(
        'offices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('specialty', sa.String(length=100), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('equipment', sa.JSON(), nullable=True),
    )

    # ── Usuarios ─────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', userrole_enum, nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('dni', sa.String(length=15), nullable=True, comment='Documento del paciente'),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('date_of_birth', sa.String(length=10), nullable=True),
        sa.Column('health_insurance', sa.String(length=150), nullable=True,
                  comment='Obra social / prepaga'),
        sa.Column('blood_type', sa.String(length=3), nullable=True),
        sa.Column('allergies', sa.JSON(), nullable=True),
        sa.Column('chronic_conditions', sa.JSON(), nullable=True),
        sa.Column('current_medications', sa.JSON(), nullable=True),
        sa.Column('emergency_contact_name', sa.String(length=200), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(length=30), nullable=True),
        sa.Column('doctor_id', sa.Uuid(), sa.ForeignKey('doctors.id'), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('verification_token', sa.String(length=64), nullable=True),
        sa.Column('password_reset_code', sa.String(length=6), nullable=True),
        sa.Column('password_reset_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_dni', 'users', ['dni'], unique=True)
    op.create_index('ix_users_verification_token', 'users', ['verification_token'])

    # ── Asignaciones de consultorio ──────────────────
    op.create_table(
        'office_assignments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('office_id', sa.Uuid(), sa.ForeignKey('offices.id'), nullable=False),
        sa.Column('office_name', sa.String(length=100), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), sa.ForeignKey('doctors.id'), nullable=False),
        sa.Column('doctor_name', sa.String(length=200), nullable=False),
        sa.Column('month', sa.SmallInteger(), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('week_days', sa.JSON(), nullable=False,
                  comment='0=Domingo, 1=Lunes, ... 6=Sábado (sin duplicados, ordenados)'),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_assignment_office_period', 'office_assignments', ['office_id', 'year', 'month'])
    op.create_index('idx_assignment_doctor_period', 'office_assignments', ['doctor_id', 'year', 'month'])

    # ── Turnos ───────────────────────────────────────
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('patient_dni', sa.String(length=15), nullable=False),
        sa.Column('patient_email', sa.String(length=255), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), sa.ForeignKey('doctors.id'), nullable=False),
        sa.Column('doctor_name', sa.String(length=200), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=False, comment='Inicio del slot, formato HH:MM'),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', status_enum, nullable=False),
        sa.Column('confirmed_by', actortype_enum, nullable=True),
        sa.Column('cancelled_by', actortype_enum, nullable=True),
        sa.Column('cancellation_reason', sa.String(length=500), nullable=True),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_appointments_patient_email', 'appointments', ['patient_email'])
    op.create_index('idx_appointment_doctor_date', 'appointments', ['doctor_id', 'date'])
    op.create_index('idx_appointment_status', 'appointments', ['status'])
    # A lo sumo un turno no cancelado por médico/fecha/hora
    op.create_index(
        'uq_appointment_doctor_slot', 'appointments', ['doctor_id', 'date', 'time'],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelada'"),
        sqlite_where=sa.text("status <> 'cancelada'"),
    )

    op.create_table(
        'appointment_cancellations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('appointment_id', sa.Uuid(), sa.ForeignKey('appointments.id'), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=False),
        sa.Column('cancelled_by', actortype_enum, nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        'ix_appointment_cancellations_appointment_id',
        'appointment_cancellations', ['appointment_id'],
    )

    # ── Historia clínica ─────────────────────────────
    op.create_table(
        'medical_records',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('patient_email', sa.String(length=255), nullable=False),
        sa.Column('patient_dni', sa.String(length=15), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), sa.ForeignKey('doctors.id'), nullable=False),
        sa.Column('doctor_name', sa.String(length=200), nullable=False),
        sa.Column('appointment_id', sa.Uuid(), sa.ForeignKey('appointments.id'), nullable=True,
                  comment='Turno que originó la consulta'),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_record_patient', 'medical_records', ['patient_email'])
    op.create_index('idx_record_doctor', 'medical_records', ['doctor_id'])

    op.create_table(
        'diagnoses',
        *_clinical_columns(),
        sa.Column('doctor_name', sa.String(length=200), nullable=False),
        sa.Column('condition', sa.String(length=300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('severity', severity_enum, nullable=False),
    )
    op.create_table(
        'prescriptions',
        *_clinical_columns(),
        sa.Column('doctor_name', sa.String(length=200), nullable=False),
        sa.Column('medication', sa.String(length=200), nullable=False),
        sa.Column('dosage', sa.String(length=100), nullable=False),
        sa.Column('frequency', sa.String(length=100), nullable=False),
        sa.Column('duration', sa.String(length=100), nullable=False),
        sa.Column('instructions', sa.Text(), nullable=True),
    )
    op.create_table(
        'medical_studies',
        *_clinical_columns(),
        sa.Column('doctor_name', sa.String(length=200), nullable=True),
        sa.Column('study_type', sa.String(length=100), nullable=False,
                  comment='Laboratorio, imagen, etc.'),
        sa.Column('study_name', sa.String(length=200), nullable=False),
        sa.Column('result', sa.Text(), nullable=True),
        sa.Column('observations', sa.Text(), nullable=True),
    )


def downgrade() -> None:
    for table in (
        'medical_studies', 'prescriptions', 'diagnoses', 'medical_records',
        'appointment_cancellations', 'appointments', 'office_assignments',
        'users', 'offices', 'doctors',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
