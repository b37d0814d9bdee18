"""
Central data model definitions used across the project.

Every extractor returns instances of these dataclasses so that:
- all modules share the same field names
- the UI layer receives one predictable shape (ContentModel + blocks)
- results serialize to the camelCase JSON the portal front end expects

All models are frozen: a model is built once per scrape call and then
only read.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, ClassVar, List, Optional, Union


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _plain(value: Any) -> Any:
    if is_dataclass(value):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Serializable:
    """
    Mixin giving dataclasses a JSON-ready to_dict().

    Optional fields that are None are left out, block classes add their
    "type" tag first.
    """

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        tag = getattr(type(self), "type", None)
        if isinstance(tag, str):
            out["type"] = tag
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            out[_camel(f.name)] = _plain(value)
        return out


# ---------------------------------------------------------------------------
# Generic blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyValueItem(_Serializable):
    label: str
    value: str


@dataclass(frozen=True)
class LinkItem(_Serializable):
    label: str
    href: str


@dataclass(frozen=True)
class HeadingBlock(_Serializable):
    type: ClassVar[str] = "heading"

    level: int
    text: str


@dataclass(frozen=True)
class ParagraphBlock(_Serializable):
    type: ClassVar[str] = "paragraph"

    text: str


@dataclass(frozen=True)
class ListBlock(_Serializable):
    type: ClassVar[str] = "list"

    ordered: bool
    items: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class KeyValueBlock(_Serializable):
    type: ClassVar[str] = "keyValue"

    items: List[KeyValueItem] = field(default_factory=list)


@dataclass(frozen=True)
class TableBlock(_Serializable):
    type: ClassVar[str] = "table"

    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)


@dataclass(frozen=True)
class LinksBlock(_Serializable):
    type: ClassVar[str] = "links"

    items: List[LinkItem] = field(default_factory=list)


@dataclass(frozen=True)
class NoteBlock(_Serializable):
    type: ClassVar[str] = "note"

    tone: str
    text: str


@dataclass(frozen=True)
class DividerBlock(_Serializable):
    type: ClassVar[str] = "divider"


# ---------------------------------------------------------------------------
# Scores (midterm) and shared records
# ---------------------------------------------------------------------------

SCORE = "score"
PROCESSING = "processing"
NOT_ANNOUNCED = "notAnnounced"
NOT_ENTERED = "notEntered"

SCORE_STATUSES = (SCORE, PROCESSING, NOT_ANNOUNCED, NOT_ENTERED)


@dataclass(frozen=True)
class ScheduleOption(_Serializable):
    """One <option> of a year / semester selector."""

    value: str
    label: str


@dataclass(frozen=True)
class ScoreAssessment(_Serializable):
    label: str
    status: str
    display: str
    raw: str


@dataclass(frozen=True)
class ScoreCourse(_Serializable):
    order: str
    course_number: str
    course_title: str
    section: str
    assessments: List[ScoreAssessment] = field(default_factory=list)


@dataclass(frozen=True)
class ScoreLegendItem(_Serializable):
    status: str
    label: str
    description: str


@dataclass(frozen=True)
class ScoreboardHeader(_Serializable):
    """Student / term lines printed above a score or grade table."""

    institution: Optional[str] = None
    faculty: Optional[str] = None
    student_id: Optional[str] = None
    student_english_name: Optional[str] = None
    student_thai_name: Optional[str] = None
    major: Optional[str] = None
    semester: Optional[str] = None


@dataclass(frozen=True)
class ScoreboardBlock(_Serializable):
    type: ClassVar[str] = "scoreboard"

    header: Optional[ScoreboardHeader] = None
    assessments: List[str] = field(default_factory=list)
    courses: List[ScoreCourse] = field(default_factory=list)
    legend: List[ScoreLegendItem] = field(default_factory=list)
    note: Optional[str] = None


@dataclass(frozen=True)
class MidtermScoreBlock(_Serializable):
    type: ClassVar[str] = "midtermScore"

    action_url: str
    years: List[ScheduleOption] = field(default_factory=list)
    semesters: List[ScheduleOption] = field(default_factory=list)
    selected_year: Optional[str] = None
    selected_semester: Optional[str] = None
    header: Optional[ScoreboardHeader] = None
    assessments: List[str] = field(default_factory=list)
    courses: List[ScoreCourse] = field(default_factory=list)
    legend: List[ScoreLegendItem] = field(default_factory=list)
    note: Optional[str] = None


# ---------------------------------------------------------------------------
# News, selection forms, registration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NewsItem(_Serializable):
    id: str
    title: str
    href: str
    date: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class NewsListBlock(_Serializable):
    type: ClassVar[str] = "newsList"

    items: List[NewsItem] = field(default_factory=list)
    title: Optional[str] = None


@dataclass(frozen=True)
class ScheduleTableBlock(_Serializable):
    type: ClassVar[str] = "scheduleTable"

    action_url: str
    years: List[ScheduleOption] = field(default_factory=list)
    semesters: List[ScheduleOption] = field(default_factory=list)
    title: Optional[str] = None


@dataclass(frozen=True)
class ExamTableBlock(_Serializable):
    type: ClassVar[str] = "examTable"

    action_url: str
    years: List[ScheduleOption] = field(default_factory=list)
    semesters: List[ScheduleOption] = field(default_factory=list)
    title: Optional[str] = None


@dataclass(frozen=True)
class MinorProgramBlock(_Serializable):
    type: ClassVar[str] = "minorProgram"

    source_url: str


@dataclass(frozen=True)
class RegistrationEligibilityBlock(_Serializable):
    type: ClassVar[str] = "registrationEligibility"

    student_id: str
    student_name: str
    semester: str
    has_eligibility: bool


# ---------------------------------------------------------------------------
# Grade report and transcript
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GradeReportCourse(_Serializable):
    no: str
    course_no: str
    course_title: str
    section: str
    credit: str
    type: str
    grade: str


@dataclass(frozen=True)
class GradeReportSummary(_Serializable):
    label: str
    ca: str
    cp: str
    cd: str
    gp: str
    gps_gpa: str
    status: str


@dataclass(frozen=True)
class GradeReportLegendItem(_Serializable):
    symbol: str
    symbol_color: str
    description: str


@dataclass(frozen=True)
class GradeReportBlock(_Serializable):
    type: ClassVar[str] = "gradeReport"

    action_url: str
    pdf_url: Optional[str] = None
    years: List[ScheduleOption] = field(default_factory=list)
    semesters: List[ScheduleOption] = field(default_factory=list)
    selected_year: Optional[str] = None
    selected_semester: Optional[str] = None
    header: Optional[ScoreboardHeader] = None
    courses: List[GradeReportCourse] = field(default_factory=list)
    summaries: List[GradeReportSummary] = field(default_factory=list)
    legend: List[GradeReportLegendItem] = field(default_factory=list)
    note: Optional[str] = None


@dataclass(frozen=True)
class TranscriptBlock(_Serializable):
    type: ClassVar[str] = "transcript"

    action_url: str
    pdf_url: Optional[str] = None


Block = Union[
    HeadingBlock,
    ParagraphBlock,
    ListBlock,
    KeyValueBlock,
    TableBlock,
    LinksBlock,
    NoteBlock,
    DividerBlock,
    ScoreboardBlock,
    MidtermScoreBlock,
    NewsListBlock,
    ScheduleTableBlock,
    ExamTableBlock,
    MinorProgramBlock,
    RegistrationEligibilityBlock,
    GradeReportBlock,
    TranscriptBlock,
]


# ---------------------------------------------------------------------------
# Content model
# ---------------------------------------------------------------------------

CONTENT_TYPES = (
    "registrationEligibility",
    "minorProgram",
    "newsList",
    "schedule",
    "exam",
    "midtermScore",
    "gradeReport",
    "transcript",
)


@dataclass(frozen=True)
class ContentModel(_Serializable):
    """
    Unified result of one scrape call.

    type is None for the generic fallback; specialized pages set one of
    CONTENT_TYPES.
    """

    title: str
    blocks: List[Block] = field(default_factory=list)
    subtitle: Optional[str] = None
    type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type is not None and self.type not in CONTENT_TYPES:
            raise ValueError(f"Unknown content type: {self.type!r}")


# ---------------------------------------------------------------------------
# Portal home page (menu + profile)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PortalMenuItem(_Serializable):
    id: str
    label: str
    url: str
    absolute_url: str
    type: str  # "internal" | "external"
    supports_embed: bool
    open_in_new_tab: bool
    raw_onclick: Optional[str] = None


@dataclass(frozen=True)
class PortalSection(_Serializable):
    key: str
    id: str
    title: str
    description: str
    icon: str
    accent: str
    order: int
    items: List[PortalMenuItem] = field(default_factory=list)


@dataclass(frozen=True)
class PortalMeta(_Serializable):
    title: str
    home_url: str
    logo_url: Optional[str] = None
    initial_server_time: Optional[str] = None


@dataclass(frozen=True)
class PortalDataset(_Serializable):
    sections: List[PortalSection]
    meta: PortalMeta


@dataclass(frozen=True)
class StudentAnnouncement(_Serializable):
    id: str
    title: str
    source: str  # "personal-info" | "registrar-highlight"
    variant: str  # "highlight" | "info" | "empty"
    href: Optional[str] = None


@dataclass(frozen=True)
class StudentProfile(_Serializable):
    student_id: str
    national_id: str
    national_id_masked: str
    thai_title: str
    thai_name: str
    thai_full_name: str
    english_title: str
    english_name: str
    english_full_name: str
    birth_date: str
    gender: str
    status: str
    faculty: str
    curriculum: str
    admission_type: str
    admission_year: str
    expected_graduation_year: str
    expected_graduation_date: str
    advisory_message: str
    announcements: List[StudentAnnouncement] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Study timetable
# ---------------------------------------------------------------------------

THEORY = "ทฤษฎี"
PRACTICE = "ปฏิบัติ"


@dataclass(frozen=True)
class ClassSession(_Serializable):
    """
    One weekly meeting of a course (a course row can hold several).
    """

    order: str
    code: str
    name: str
    credits: str
    theory: str
    practice: str
    day: str  # "จ.", "อ.", ... "อา."
    start: str  # HH:MM
    end: str  # HH:MM
    kind: str  # THEORY | PRACTICE
    room: str = ""
    building: str = ""
    note: str = ""


@dataclass(frozen=True)
class StudentInfo(_Serializable):
    faculty: str = ""
    department: str = ""
    major: str = ""
    semester: str = ""
    year: str = ""
    student_id: str = ""
    name: str = ""


@dataclass(frozen=True)
class StudyTimetable(_Serializable):
    student: StudentInfo
    sessions: List[ClassSession] = field(default_factory=list)


@dataclass(frozen=True)
class TimeSlot(_Serializable):
    session: ClassSession
    span: int
