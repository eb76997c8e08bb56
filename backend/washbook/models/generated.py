import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


def new_id() -> str:
    return str(uuid.uuid4())


class Tenants(Base):
    __tablename__ = 'tenants'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    status = Column(Enum('pending', 'approved', 'suspended', name='tenant_status'), nullable=False, server_default=text("'approved'"))
    timezone = Column(Text)  # IANA name; NULL = settings.default_timezone
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    users = relationship('Users', back_populates='tenant')
    services = relationship('Services', back_populates='tenant')
    operating_hours = relationship('OperatingHours', back_populates='tenant')
    time_slots = relationship('TimeSlots', back_populates='tenant')
    bookings = relationship('Bookings', back_populates='tenant')


class Users(Base):
    """Read-only here: rows are owned by the auth service."""

    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=new_id)
    full_name = Column(Text, nullable=False)
    role = Column(Enum('customer', 'manager', 'super_admin', name='user_role'), nullable=False, server_default=text("'customer'"))
    tenant_id = Column(ForeignKey('tenants.id', ondelete='SET NULL'))
    email = Column(Text)
    phone = Column(Text)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    tenant = relationship('Tenants', back_populates='users')
    bookings = relationship('Bookings', back_populates='customer')


class Services(Base):
    __tablename__ = 'services'

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    duration_min = Column(Integer, nullable=False, server_default=text('60'))
    buffer_min = Column(Integer, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    sort_order = Column(Integer, nullable=False, server_default=text('0'))
    description = Column(Text)

    tenant = relationship('Tenants', back_populates='services')
    bookings = relationship('Bookings', back_populates='service')


class OperatingHours(Base):
    __tablename__ = 'operating_hours'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'day_of_week', name='uq_operating_hours_tenant_day'),
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_operating_hours_day'),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    is_closed = Column(Integer, nullable=False, server_default=text('0'))

    tenant = relationship('Tenants', back_populates='operating_hours')


class TimeSlots(Base):
    __tablename__ = 'time_slots'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'slot_date', 'start_time', name='uq_time_slots_tenant_date_start'),
        CheckConstraint('booked_count >= 0', name='ck_time_slots_booked_count'),
        CheckConstraint("status IN ('available', 'full', 'blocked')", name='ck_time_slots_status'),
        Index('ix_time_slots_tenant_date', 'tenant_id', 'slot_date'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    slot_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    max_capacity = Column(Integer, nullable=False, server_default=text('1'))
    booked_count = Column(Integer, nullable=False, server_default=text('0'))
    status = Column(Text, nullable=False, server_default=text("'available'"))

    tenant = relationship('Tenants', back_populates='time_slots')
    bookings = relationship('Bookings', back_populates='time_slot')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_tenant_date', 'tenant_id', 'booking_date'),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    customer_id = Column(ForeignKey('users.id'), nullable=False, index=True)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    time_slot_id = Column(ForeignKey('time_slots.id'), nullable=False, index=True)
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    total_amount = Column(Float, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'reserved'"))
    payment_status = Column(Text, nullable=False, server_default=text("'pending'"))
    cancellation_reason = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    tenant = relationship('Tenants', back_populates='bookings')
    customer = relationship('Users', back_populates='bookings')
    service = relationship('Services', back_populates='bookings')
    time_slot = relationship('TimeSlots', back_populates='bookings')

    @property
    def service_name(self):
        return self.service.name if self.service else None

    @property
    def tenant_name(self):
        return self.tenant.name if self.tenant else None

    @property
    def customer_name(self):
        return self.customer.full_name if self.customer else None


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id = Column(Integer, primary_key=True)
    action = Column(Text, nullable=False)

    actor_user_id = Column(
        ForeignKey('users.id', ondelete='SET NULL')
    )
    tenant_id = Column(
        ForeignKey('tenants.id', ondelete='SET NULL')
    )

    entity_type = Column(Text)
    entity_id = Column(Text)
    old_values = Column(Text)  # JSON
    new_values = Column(Text)  # JSON
    ip_address = Column(Text)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default=text('CURRENT_TIMESTAMP')
    )
