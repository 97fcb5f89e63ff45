import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Float,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .database import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    pin = Column(String)
    pin_created_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    activities = relationship(
        "UserActivity", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class FlightRecord(Base):
    __tablename__ = "flight_records"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(DateTime, nullable=False)
    airline = Column(String, nullable=False)
    fleet = Column(String, nullable=False)
    flight_number = Column(String)
    tail = Column(String)
    station = Column(String, nullable=False)
    service = Column(String, nullable=False)
    has_time = Column(Boolean, default=False)
    block_time = Column(String)
    out_time = Column(String)
    has_defect = Column(Boolean, default=False)
    log_page_no = Column(String)
    discrepancy_note = Column(Text)
    rectification_note = Column(Text)
    system_affected = Column(String)
    defect_status = Column(String)
    rii_required = Column(Boolean, default=False)
    inspected_by = Column(String)
    fixing_manual = Column(String)
    manual_reference = Column(String)
    has_part_replaced = Column(Boolean, default=False)
    has_attachments = Column(Boolean, default=False)
    has_comment = Column(Boolean, default=False)
    comment = Column(Text)
    technician = Column(String)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    attachments = relationship(
        "FlightRecordAttachment", back_populates="flight_record", cascade="all, delete-orphan"
    )
    part_replacements = relationship(
        "PartReplacement", back_populates="flight_record", cascade="all, delete-orphan"
    )


class PartReplacement(Base):
    __tablename__ = "part_replacements"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    flight_record_id = Column(
        UUID(as_uuid=True), ForeignKey("flight_records.id", ondelete="CASCADE"), nullable=False
    )
    pn_off = Column(String)
    sn_off = Column(String)
    pn_on = Column(String)
    sn_on = Column(String)

    flight_record = relationship("FlightRecord", back_populates="part_replacements")


class FlightRecordAttachment(Base):
    __tablename__ = "flight_record_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    flight_record_id = Column(
        UUID(as_uuid=True), ForeignKey("flight_records.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    flight_record = relationship("FlightRecord", back_populates="attachments")


class StockInventory(Base):
    __tablename__ = "stock_inventory"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    incoming_date = Column(DateTime, nullable=False)
    station = Column(String, nullable=False)
    owner = Column(String, nullable=False)
    description = Column(String, nullable=False)
    part_no = Column(String, nullable=False)
    serial_no = Column(String, nullable=False)
    quantity = Column(String, nullable=False)
    type = Column(String, nullable=False)
    location = Column(String, nullable=False)
    custom_station = Column(String)
    custom_owner = Column(String)
    custom_type = Column(String)
    custom_location = Column(String)
    has_expire_date = Column(Boolean, default=False)
    expire_date = Column(DateTime)
    has_inspection = Column(Boolean, default=False)
    inspection_result = Column(String)
    inspection_failure = Column(String)
    custom_failure = Column(String)
    has_comment = Column(Boolean, default=False)
    comment = Column(Text)
    has_attachments = Column(Boolean, default=False)
    technician = Column(String)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    attachments = relationship(
        "StockInventoryAttachment", back_populates="stock_inventory", cascade="all, delete-orphan"
    )
    incoming_inspections = relationship("IncomingInspection", back_populates="stock_inventory")


class StockInventoryAttachment(Base):
    __tablename__ = "stock_inventory_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    stock_inventory_id = Column(
        UUID(as_uuid=True), ForeignKey("stock_inventory.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    stock_inventory = relationship("StockInventory", back_populates="attachments")


class IncomingInspection(Base):
    __tablename__ = "incoming_inspections"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inspection_date = Column(DateTime, nullable=False)
    inspector = Column(String, nullable=False)
    stock_inventory_id = Column(
        UUID(as_uuid=True), ForeignKey("stock_inventory.id", ondelete="SET NULL"), nullable=True
    )
    stock_inventory_deleted = Column(Boolean, default=False, nullable=False)
    # copied from the stock record so the inspection stays readable without it
    part_no = Column(String)
    serial_no = Column(String)
    description = Column(String)
    product_match = Column(String)
    product_specs = Column(String)
    batch_number = Column(String)
    product_observations = Column(Text)
    quantity_match = Column(String)
    physical_condition = Column(String)
    expiration_date = Column(String)
    serviceable_expiry = Column(String)
    physical_defects = Column(String)
    suspected_unapproved = Column(String)
    quantity_observations = Column(Text)
    esd_sensitive = Column(String)
    inventory_recorded = Column(String)
    temperature_control = Column(String)
    handling_observations = Column(Text)
    has_attachments = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    stock_inventory = relationship("StockInventory", back_populates="incoming_inspections")
    attachments = relationship(
        "IncomingInspectionAttachment", back_populates="incoming_inspection", cascade="all, delete-orphan"
    )


class IncomingInspectionAttachment(Base):
    __tablename__ = "incoming_inspection_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    incoming_inspection_id = Column(
        UUID(as_uuid=True), ForeignKey("incoming_inspections.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    incoming_inspection = relationship("IncomingInspection", back_populates="attachments")


class AirportID(Base):
    __tablename__ = "airport_ids"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_name = Column(String, nullable=False)
    station = Column(String, nullable=False)
    custom_station = Column(String)
    id_issued_date = Column(DateTime, nullable=False)
    badge_id_number = Column(String, nullable=False)
    expire_date = Column(DateTime, nullable=False)
    has_comment = Column(Boolean, default=False)
    comment = Column(Text)
    has_attachment = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    attachments = relationship(
        "AirportIDAttachment", back_populates="airport_id", cascade="all, delete-orphan"
    )


class AirportIDAttachment(Base):
    __tablename__ = "airport_id_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    airport_id_id = Column(
        UUID(as_uuid=True), ForeignKey("airport_ids.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    airport_id = relationship("AirportID", back_populates="attachments")


class SDRReport(Base):
    __tablename__ = "sdr_reports"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    control_number = Column(String, unique=True, nullable=False)
    report_title = Column(String, nullable=False)
    difficulty_date = Column(DateTime, nullable=False)
    submitter = Column(String, nullable=False)
    submitter_other = Column(String)
    submitter_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    station = Column(String, nullable=False)
    condition = Column(String, nullable=False)
    condition_other = Column(String)
    how_discovered = Column(String, nullable=False)
    how_discovered_other = Column(String)
    has_flight_number = Column(Boolean, default=False)
    flight_number = Column(String)
    part_or_airplane = Column(String, nullable=False)
    airplane_model = Column(String)
    airplane_tail_number = Column(String)
    part_number = Column(String)
    serial_number = Column(String)
    time_of_discover = Column(String)
    has_ata_code = Column(Boolean, default=False)
    ata_system_code = Column(String)
    problem_description = Column(Text, nullable=False)
    symptoms = Column(Text)
    consequences = Column(Text)
    corrective_action = Column(Text)
    has_attachments = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    attachments = relationship(
        "SDRReportAttachment", back_populates="sdr_report", cascade="all, delete-orphan"
    )


class SDRReportAttachment(Base):
    __tablename__ = "sdr_report_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sdr_report_id = Column(
        UUID(as_uuid=True), ForeignKey("sdr_reports.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    sdr_report = relationship("SDRReport", back_populates="attachments")


class SMSReport(Base):
    __tablename__ = "sms_reports"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_number = Column(String, unique=True, nullable=False)
    reporter_name = Column(String)
    reporter_email = Column(String)
    date = Column(DateTime, nullable=False)
    time_of_event = Column(String)
    report_title = Column(String, nullable=False)
    report_description = Column(Text, nullable=False)
    has_attachments = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    attachments = relationship(
        "SMSReportAttachment", back_populates="sms_report", cascade="all, delete-orphan"
    )


class SMSReportAttachment(Base):
    __tablename__ = "sms_report_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sms_report_id = Column(
        UUID(as_uuid=True), ForeignKey("sms_reports.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    sms_report = relationship("SMSReport", back_populates="attachments")


class TechnicianTraining(Base):
    __tablename__ = "technician_trainings"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(DateTime, nullable=False)
    technician = Column(String, nullable=False)
    organization = Column(String, nullable=False)
    custom_org = Column(String)
    type = Column(String, nullable=False)
    custom_type = Column(String)
    training = Column(String, nullable=False)
    has_engine = Column(Boolean, default=False)
    engine_type = Column(String)
    has_hours = Column(Boolean, default=False)
    hours = Column(Float)
    has_comment = Column(Boolean, default=False)
    comment = Column(Text)
    has_attachments = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    attachments = relationship(
        "TechnicianTrainingAttachment", back_populates="technician_training", cascade="all, delete-orphan"
    )


class TechnicianTrainingAttachment(Base):
    __tablename__ = "technician_training_attachments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    technician_training_id = Column(
        UUID(as_uuid=True), ForeignKey("technician_trainings.id", ondelete="CASCADE"), nullable=False
    )
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    technician_training = relationship("TechnicianTraining", back_populates="attachments")


class DocumentFolder(Base):
    __tablename__ = "document_folders"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text)
    path = Column(String, nullable=False)
    parent_id = Column(UUID(as_uuid=True), ForeignKey("document_folders.id", ondelete="CASCADE"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    parent = relationship("DocumentFolder", remote_side=[id], back_populates="children")
    children = relationship("DocumentFolder", back_populates="parent", cascade="all, delete-orphan")
    files = relationship("DocumentFile", back_populates="folder", cascade="all, delete-orphan")

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def child_count(self) -> int:
        return len(self.children)


class DocumentFile(Base):
    __tablename__ = "document_files"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    path = Column(String, nullable=False)
    description = Column(Text)
    tags = Column(JSON, default=list)
    is_public = Column(Boolean, default=False)
    download_count = Column(Integer, default=0, nullable=False)
    last_accessed_at = Column(DateTime)
    folder_id = Column(UUID(as_uuid=True), ForeignKey("document_folders.id", ondelete="CASCADE"))
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    folder = relationship("DocumentFolder", back_populates="files")


class TechnicalQuery(Base):
    __tablename__ = "technical_queries"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String)
    priority = Column(String, default="MEDIUM", nullable=False)
    tags = Column(JSON, default=list)
    status = Column(String, default="OPEN", nullable=False)
    is_resolved = Column(Boolean, default=False, nullable=False)
    resolved_at = Column(DateTime)
    view_count = Column(Integer, default=0, nullable=False)
    upvotes = Column(Integer, default=0, nullable=False)
    downvotes = Column(Integer, default=0, nullable=False)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    updated_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    resolved_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    created_by = relationship("User", foreign_keys=[created_by_id])
    resolved_by = relationship("User", foreign_keys=[resolved_by_id])
    responses = relationship(
        "TechnicalQueryResponse", back_populates="technical_query", cascade="all, delete-orphan"
    )
    votes = relationship(
        "TechnicalQueryVote", back_populates="technical_query", cascade="all, delete-orphan"
    )

    @property
    def response_count(self) -> int:
        return len(self.responses)


class TechnicalQueryResponse(Base):
    __tablename__ = "technical_query_responses"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    content = Column(Text, nullable=False)
    is_accepted_answer = Column(Boolean, default=False, nullable=False)
    upvotes = Column(Integer, default=0, nullable=False)
    downvotes = Column(Integer, default=0, nullable=False)
    technical_query_id = Column(
        UUID(as_uuid=True), ForeignKey("technical_queries.id", ondelete="CASCADE"), nullable=False
    )
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    technical_query = relationship("TechnicalQuery", back_populates="responses")
    created_by = relationship("User")
    votes = relationship(
        "TechnicalQueryResponseVote", back_populates="response", cascade="all, delete-orphan"
    )


class TechnicalQueryVote(Base):
    __tablename__ = "technical_query_votes"
    __table_args__ = (UniqueConstraint("technical_query_id", "user_id"),)
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vote_type = Column(String, nullable=False)
    technical_query_id = Column(
        UUID(as_uuid=True), ForeignKey("technical_queries.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    technical_query = relationship("TechnicalQuery", back_populates="votes")


class TechnicalQueryResponseVote(Base):
    __tablename__ = "technical_query_response_votes"
    __table_args__ = (UniqueConstraint("response_id", "user_id"),)
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vote_type = Column(String, nullable=False)
    response_id = Column(
        UUID(as_uuid=True), ForeignKey("technical_query_responses.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    response = relationship("TechnicalQueryResponse", back_populates="votes")


class TemperatureControl(Base):
    __tablename__ = "temperature_controls"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(DateTime, nullable=False)
    location = Column(String, nullable=False)
    custom_location = Column(String)
    time = Column(String, nullable=False)
    temperature = Column(Float, nullable=False)
    humidity = Column(Float, nullable=False)
    employee_name = Column(String, nullable=False)
    has_comment = Column(Boolean, default=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class TemperatureHumidityConfig(Base):
    __tablename__ = "temperature_humidity_configs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    temp_normal_min = Column(Float, nullable=False)
    temp_normal_max = Column(Float, nullable=False)
    temp_medium_min = Column(Float, nullable=False)
    temp_medium_max = Column(Float, nullable=False)
    temp_high_min = Column(Float, nullable=False)
    humidity_normal_min = Column(Float, nullable=False)
    humidity_normal_max = Column(Float, nullable=False)
    humidity_medium_min = Column(Float, nullable=False)
    humidity_medium_max = Column(Float, nullable=False)
    humidity_high_min = Column(Float, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Manual(Base):
    __tablename__ = "manuals"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    number = Column(String, unique=True, nullable=False)
    revision = Column(String)
    revision_date = Column(DateTime)
    description = Column(Text)
    keywords = Column(JSON, default=list)
    status = Column(String, default="DRAFT", nullable=False)
    current_version_id = Column(UUID(as_uuid=True))
    file_key = Column(String)
    file_type = Column(String, default="none")
    file_size = Column(Integer, default=0)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    updated_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    created_by = relationship("User", foreign_keys=[created_by_id])
    versions = relationship(
        "ManualVersion",
        back_populates="manual",
        cascade="all, delete-orphan",
        order_by="ManualVersion.version_number.desc()",
    )
    comments = relationship(
        "ManualComment",
        back_populates="manual",
        cascade="all, delete-orphan",
        order_by="ManualComment.created_at.desc()",
    )

    @property
    def current_version(self):
        for version in self.versions:
            if version.id == self.current_version_id:
                return version
        return None


class ManualVersion(Base):
    __tablename__ = "manual_versions"
    __table_args__ = (UniqueConstraint("manual_id", "version_number"),)
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    manual_id = Column(UUID(as_uuid=True), ForeignKey("manuals.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    comment = Column(Text)
    file_name = Column(String, nullable=False)
    file_key = Column(String, unique=True, nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String, nullable=False)
    editor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)

    manual = relationship("Manual", back_populates="versions")
    editor = relationship("User")


class ManualComment(Base):
    __tablename__ = "manual_comments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    manual_id = Column(UUID(as_uuid=True), ForeignKey("manuals.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    manual = relationship("Manual", back_populates="comments")
    user = relationship("User")


class UserActivity(Base):
    __tablename__ = "user_activities"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action = Column(String, nullable=False)
    resource_type = Column(String)
    resource_id = Column(String)
    resource_title = Column(String)
    meta = Column("metadata", JSON)
    ip_address = Column(String)
    user_agent = Column(String)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="activities")
