from datetime import datetime
from typing import Optional, Any, Dict, Literal, List
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from pydantic.alias_generators import to_camel
from uuid import UUID


class CamelModel(BaseModel):
    """Base for API payloads; fields are snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Auth

class RegisterRequest(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class VerifyRequest(CamelModel):
    user_id: Optional[UUID] = None
    pin: Optional[str] = None


class ResendPinRequest(CamelModel):
    user_id: Optional[UUID] = None


class SignInRequest(CamelModel):
    identifier: Optional[str] = None
    password: Optional[str] = None


class VerifyPasswordRequest(CamelModel):
    password: Optional[str] = None
    check_only: bool = False


class UserOut(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    username: str
    email: EmailStr


class UserSummary(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    username: str


# Attachments

class AttachmentOut(CamelModel):
    id: UUID
    file_name: str
    file_key: str
    file_size: int
    file_type: str
    created_at: Optional[datetime] = None


class FileResult(CamelModel):
    file_key: str
    type: str
    success: bool
    error: Optional[str] = None


class BulkDeleteRequest(CamelModel):
    ids: List[UUID] = []


# Flight records

class PartReplacementIn(CamelModel):
    pn_off: Optional[str] = None
    sn_off: Optional[str] = None
    pn_on: Optional[str] = None
    sn_on: Optional[str] = None


class PartReplacementOut(PartReplacementIn):
    id: UUID


class FlightRecordOut(CamelModel):
    id: UUID
    date: datetime
    airline: str
    fleet: str
    flight_number: Optional[str] = None
    tail: Optional[str] = None
    station: str
    service: str
    has_time: bool = False
    block_time: Optional[str] = None
    out_time: Optional[str] = None
    has_defect: bool = False
    log_page_no: Optional[str] = None
    discrepancy_note: Optional[str] = None
    rectification_note: Optional[str] = None
    system_affected: Optional[str] = None
    defect_status: Optional[str] = None
    rii_required: bool = False
    inspected_by: Optional[str] = None
    fixing_manual: Optional[str] = None
    manual_reference: Optional[str] = None
    has_part_replaced: bool = False
    has_attachments: bool = False
    has_comment: bool = False
    comment: Optional[str] = None
    technician: Optional[str] = None
    created_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []
    part_replacements: List[PartReplacementOut] = []


# Stock inventory and inspections

class StockInventoryBase(CamelModel):
    id: UUID
    incoming_date: datetime
    station: str
    owner: str
    description: str
    part_no: str
    serial_no: str
    quantity: str
    type: str
    location: str
    has_expire_date: bool = False
    expire_date: Optional[datetime] = None
    has_inspection: bool = False
    inspection_result: Optional[str] = None
    inspection_failure: Optional[str] = None
    custom_failure: Optional[str] = None
    has_comment: bool = False
    comment: Optional[str] = None
    has_attachments: bool = False
    technician: Optional[str] = None
    created_at: Optional[datetime] = None


class IncomingInspectionCreate(CamelModel):
    inspection_date: str
    inspector: str
    stock_inventory_id: Optional[UUID] = None
    product_match: Optional[str] = None
    product_specs: Optional[str] = None
    batch_number: Optional[str] = None
    product_observations: Optional[str] = None
    quantity_match: Optional[str] = None
    physical_condition: Optional[str] = None
    expiration_date: Optional[str] = None
    serviceable_expiry: Optional[str] = None
    physical_defects: Optional[str] = None
    suspected_unapproved: Optional[str] = None
    quantity_observations: Optional[str] = None
    esd_sensitive: Optional[str] = None
    inventory_recorded: Optional[str] = None
    temperature_control: Optional[str] = None
    handling_observations: Optional[str] = None


class IncomingInspectionBase(CamelModel):
    id: UUID
    inspection_date: datetime
    inspector: str
    stock_inventory_id: Optional[UUID] = None
    stock_inventory_deleted: bool = False
    part_no: Optional[str] = None
    serial_no: Optional[str] = None
    description: Optional[str] = None
    product_match: Optional[str] = None
    product_specs: Optional[str] = None
    batch_number: Optional[str] = None
    product_observations: Optional[str] = None
    quantity_match: Optional[str] = None
    physical_condition: Optional[str] = None
    expiration_date: Optional[str] = None
    serviceable_expiry: Optional[str] = None
    physical_defects: Optional[str] = None
    suspected_unapproved: Optional[str] = None
    quantity_observations: Optional[str] = None
    esd_sensitive: Optional[str] = None
    inventory_recorded: Optional[str] = None
    temperature_control: Optional[str] = None
    handling_observations: Optional[str] = None
    has_attachments: bool = False
    created_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []


class IncomingInspectionOut(IncomingInspectionBase):
    stock_inventory: Optional[StockInventoryBase] = None


class StockInventoryOut(StockInventoryBase):
    attachments: List[AttachmentOut] = []
    incoming_inspections: List[IncomingInspectionBase] = []


class StockReportRequest(CamelModel):
    start_date: str
    end_date: str
    owner: Optional[str] = None
    selected_columns: Dict[str, bool]


# Airport ID

class AirportIDOut(CamelModel):
    id: UUID
    employee_name: str
    station: str
    custom_station: Optional[str] = None
    id_issued_date: datetime
    badge_id_number: str
    expire_date: datetime
    has_comment: bool = False
    comment: Optional[str] = None
    has_attachment: bool = False
    created_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []


# Safety reports

class SDRReportOut(CamelModel):
    id: UUID
    control_number: str
    report_title: str
    difficulty_date: datetime
    submitter: str
    submitter_other: Optional[str] = None
    submitter_name: str
    email: str
    station: str
    condition: str
    condition_other: Optional[str] = None
    how_discovered: str
    how_discovered_other: Optional[str] = None
    has_flight_number: bool = False
    flight_number: Optional[str] = None
    part_or_airplane: str
    airplane_model: Optional[str] = None
    airplane_tail_number: Optional[str] = None
    part_number: Optional[str] = None
    serial_number: Optional[str] = None
    time_of_discover: Optional[str] = None
    has_ata_code: bool = False
    ata_system_code: Optional[str] = None
    problem_description: str
    symptoms: Optional[str] = None
    consequences: Optional[str] = None
    corrective_action: Optional[str] = None
    has_attachments: bool = False
    created_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []


class SMSReportOut(CamelModel):
    id: UUID
    report_number: str
    reporter_name: Optional[str] = None
    reporter_email: Optional[str] = None
    date: datetime
    time_of_event: Optional[str] = None
    report_title: str
    report_description: str
    has_attachments: bool = False
    created_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []


# Technician training

class TechnicianTrainingCreate(CamelModel):
    date: datetime
    technician: str = Field(min_length=1)
    organization: str
    custom_org: Optional[str] = None
    type: str
    custom_type: Optional[str] = None
    training: str = Field(min_length=1)
    has_engine: bool = False
    engine_type: Optional[str] = None
    has_hours: bool = False
    hours: Optional[float] = None
    has_comment: bool = False
    comment: Optional[str] = None
    has_attachments: bool = False


class TechnicianTrainingOut(TechnicianTrainingCreate):
    id: UUID
    created_at: Optional[datetime] = None
    attachments: List[AttachmentOut] = []


class TechnicianCount(CamelModel):
    technician: str
    training_count: int


# Document storage

class FolderCreate(CamelModel):
    name: Optional[str] = None
    parent_id: Optional[UUID] = None
    description: Optional[str] = None


class FolderUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None


class FileUpdate(CamelModel):
    file_name: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    folder_id: Optional[UUID] = None


class DocumentFileOut(CamelModel):
    id: UUID
    file_name: str
    file_size: int
    file_type: str
    path: str
    folder_id: Optional[UUID] = None
    tags: List[str] = []
    description: Optional[str] = None
    is_public: bool = False
    download_count: int = 0
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FolderOut(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    path: str
    parent_id: Optional[UUID] = None
    file_count: int = 0
    child_count: int = 0
    created_at: Optional[datetime] = None


class FolderDetailOut(FolderOut):
    files: List[DocumentFileOut] = []


# Technical queries

VoteType = Literal["UP", "DOWN"]


class TechnicalQueryCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    tags: List[str] = []


class TechnicalQueryUpdate(TechnicalQueryCreate):
    status: Optional[str] = None
    is_resolved: bool = False


class ResponseCreate(CamelModel):
    content: Optional[str] = None


class VoteRequest(CamelModel):
    vote_type: Optional[str] = None


class TechnicalQueryResponseOut(CamelModel):
    id: UUID
    content: str
    is_accepted_answer: bool = False
    upvotes: int = 0
    downvotes: int = 0
    created_by: UserSummary
    created_at: Optional[datetime] = None


class TechnicalQueryOut(CamelModel):
    id: UUID
    title: str
    description: str
    category: Optional[str] = None
    priority: str
    tags: List[str] = []
    status: str
    is_resolved: bool = False
    resolved_at: Optional[datetime] = None
    view_count: int = 0
    upvotes: int = 0
    downvotes: int = 0
    response_count: int = 0
    created_by: UserSummary
    resolved_by: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TechnicalQueryDetailOut(TechnicalQueryOut):
    responses: List[TechnicalQueryResponseOut] = []


class VoteOutcome(CamelModel):
    action: Literal["created", "updated", "removed"]
    vote_type: VoteType
    previous_vote_type: Optional[VoteType] = None
    upvotes: int
    downvotes: int
    user_vote: Optional[VoteType] = None


# Temperature control

class TemperatureControlOut(CamelModel):
    id: UUID
    date: datetime
    location: str
    custom_location: Optional[str] = None
    time: str
    temperature: float
    humidity: float
    employee_name: str
    has_comment: bool = False
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    temperature_level: Optional[str] = None
    humidity_level: Optional[str] = None


class TemperatureHumidityRanges(CamelModel):
    temp_normal_min: float
    temp_normal_max: float
    temp_medium_min: float
    temp_medium_max: float
    temp_high_min: float
    humidity_normal_min: float
    humidity_normal_max: float
    humidity_medium_min: float
    humidity_medium_max: float
    humidity_high_min: float


class TemperatureHumidityConfigUpdate(CamelModel):
    temp_normal_min: Optional[float] = None
    temp_normal_max: Optional[float] = None
    temp_medium_min: Optional[float] = None
    temp_medium_max: Optional[float] = None
    temp_high_min: Optional[float] = None
    humidity_normal_min: Optional[float] = None
    humidity_normal_max: Optional[float] = None
    humidity_medium_min: Optional[float] = None
    humidity_medium_max: Optional[float] = None
    humidity_high_min: Optional[float] = None


class TemperatureHumidityConfigOut(TemperatureHumidityRanges):
    id: UUID
    is_active: bool = True
    updated_at: Optional[datetime] = None


# Manuals

ManualStatus = Literal["DRAFT", "APPROVED", "ARCHIVED"]


class ManualStatusUpdate(CamelModel):
    status: Optional[str] = None


class ManualVersionOut(CamelModel):
    id: UUID
    version_number: int
    comment: Optional[str] = None
    file_name: str
    file_key: str
    file_size: int
    file_type: str
    editor: Optional[UserSummary] = None
    created_at: Optional[datetime] = None


class ManualOut(CamelModel):
    id: UUID
    name: str
    number: str
    revision: Optional[str] = None
    revision_date: Optional[datetime] = None
    description: Optional[str] = None
    keywords: List[str] = []
    status: ManualStatus
    current_version_id: Optional[UUID] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ManualDetailOut(ManualOut):
    versions: List[ManualVersionOut] = []


class ManualCommentCreate(CamelModel):
    content: Optional[str] = None


class ManualCommentOut(CamelModel):
    id: UUID
    content: str
    user: UserSummary
    created_at: Optional[datetime] = None


# Analytics

class NameCount(CamelModel):
    name: str
    count: int


class NameValue(CamelModel):
    name: str
    value: int


class DayCount(CamelModel):
    date: str
    count: int


class DefectAnalyticsOut(CamelModel):
    total_fleet_count: int
    total_log_page_no_count: int
    top_systems_affected: List[NameCount]
    heatmap_data: List[DayCount]
    donut_chart_data: List[NameValue]
    fleet_type_chart_data: List[NameValue]


class SystemCount(CamelModel):
    system: str
    count: int


class FleetSummaryOut(CamelModel):
    fleet_type: str
    total_defects: int
    affected_systems_count: int
    affected_systems: List[SystemCount]


class FleetDetailOut(CamelModel):
    fleet_type: str
    total_defects: int
    systems: List[SystemCount]


class SystemRecordOut(CamelModel):
    id: UUID
    airline: str
    fleet: str
    tail: Optional[str] = None
    date: datetime
    discrepancy_note: Optional[str] = None


# Activity

class UserActivityOut(CamelModel):
    id: UUID
    user_id: UUID
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    resource_title: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


def serialize(model_cls, obj) -> Dict[str, Any]:
    """Validate an ORM object against ``model_cls`` and dump it camelCased."""
    return model_cls.model_validate(obj).model_dump(by_alias=True, mode="json")


def serialize_all(model_cls, objs) -> List[Dict[str, Any]]:
    return [serialize(model_cls, o) for o in objs]
