"""Hand-authored field lists for the four known template kinds.

Order matters: consumers render fields in the order defined here.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

from formbind.schema.models import (
    CELL_BLANK_TOKEN,
    SHORT_BLANK_TOKEN,
    FieldDefinition,
    LocatorRule,
    TemplateKind,
    ValueType,
)

PERSON_ROW_SUFFIXES = ("name", "nric", "company")

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

TBM_SUBJECTS = (
    "Overhead and falling object hazards",
    "Falling from height hazard",
    "Tripping & slipping hazards",
    "Cutting & laceration hazards",
    "Hazards involving corrosive substance",
    "Eye protection",
    "Respiratory protection",
    "Hearing conservation",
    "Inspection and use of personal protective equipment",
    "Chemical hazard / SDS",
    "Heat stress",
    "Electrical hazard",
    "Fire hazard",
    "Hazards involving hot works",
    "Safe operation of machinery",
    "Registration, inspection, and usage of scaffold",
    "Hazards involving lifting operation",
    "Checking and clearing of stagnant water",
    "Housekeeping",
    "Dos & Don'ts",
)

VSS_INSPECTION_ITEMS = (
    "Cameras are mounted securely and cover the work area",
    "Live feed is visible on the monitoring device",
    "Recording is active and the timestamp is correct",
    "Power supply and cabling are protected from damage",
    "Signage informing workers of video surveillance is displayed",
)

PTW_CONTROL_MEASURES = (
    "Work area barricaded and warning signs displayed",
    "Workers trained and briefed on the work at height plan",
    "Full body harness inspected and fit for use",
    "Anchorage points identified and certified",
    "Lifeline installed and inspected",
    "Scaffold tagged and inspected by competent person",
    "Mobile elevated work platform inspected and certified",
    "Ladders inspected and secured",
    "Falling object protection provided",
    "Weather conditions assessed as safe",
    "Rescue plan established and communicated",
)

PTW_COMPLETION_STATUSES = (
    ("ptw_s5_completed", "Task Completed", "Task completed"),
    ("ptw_s5_suspended", "Suspended due to expiry", "Permit suspended due to expiry"),
    (
        "ptw_s5_terminated",
        "Terminated due to condition change",
        "Permit terminated due to change in work condition",
    ),
)

TBM_ATTENDEE_ROWS = 26
WAH_PERSONNEL_ROWS = 28


def _cell(label: str, *, scope: str | None = None) -> LocatorRule:
    """Value in the table cell right of a bold label cell."""

    return LocatorRule(anchor=re.escape(f"**{label}** |"), scope=scope)


def _inline(label: str) -> LocatorRule:
    """Value following a bold label within a paragraph."""

    return LocatorRule(anchor=re.escape(f"**{label}**"))


def _row(head: str, *, scope: str | None = None) -> LocatorRule:
    """Value in the cells following a row's leading cell(s)."""

    return LocatorRule(anchor=re.escape(f"| {head} |"), scope=scope)


def _person_row(number: int, scope: str) -> LocatorRule:
    return LocatorRule(anchor="^" + re.escape(f"| {number} |"), scope=scope)


def _section(number: int) -> str:
    return rf"^## Section {number}\b"


def _person_rows(prefix: str, label: str, count: int, scope: str) -> list[FieldDefinition]:
    return [
        FieldDefinition(
            key=f"{prefix}_{index}",
            label=f"{label} {index}",
            value_type=ValueType.PERSON_ROW,
            locator=_person_row(index, scope),
            options_source="workers",
            blank=CELL_BLANK_TOKEN,
            sibling_suffixes=PERSON_ROW_SUFFIXES,
        )
        for index in range(1, count + 1)
    ]


def _checklist(prefix: str, items: tuple[str, ...]) -> list[FieldDefinition]:
    return [
        FieldDefinition(
            key=f"{prefix}_{index}",
            label=f"{index}. {item}",
            value_type=ValueType.CHECKBOX,
            locator=_row(f"{index} | {item}"),
        )
        for index, item in enumerate(items, start=1)
    ]


def _sign_off(prefix: str, title: str, section: int) -> list[FieldDefinition]:
    scope = _section(section)
    return [
        FieldDefinition(
            key=f"{prefix}_name",
            label=f"{title} - Name",
            value_type=ValueType.SHORT_TEXT,
            required=True,
            locator=_cell("Name:", scope=scope),
        ),
        FieldDefinition(
            key=f"{prefix}_signature",
            label=f"{title} - Signature",
            value_type=ValueType.SIGNATURE,
            required=True,
            locator=_cell("Signature:", scope=scope),
        ),
        FieldDefinition(
            key=f"{prefix}_designation",
            label=f"{title} - Designation",
            value_type=ValueType.SHORT_TEXT,
            required=True,
            locator=_cell("Designation:", scope=scope),
        ),
        FieldDefinition(
            key=f"{prefix}_date",
            label=f"{title} - Date",
            value_type=ValueType.DATE,
            required=True,
            locator=_cell("Date:", scope=scope),
        ),
    ]


TOOLBOX_MEETING_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition(
        key="tbm_project_title",
        label="Project Title",
        value_type=ValueType.SINGLE_SELECT,
        required=True,
        options_source="jobs",
        locator=_cell("Project Title:"),
    ),
    FieldDefinition(
        key="tbm_date_meeting",
        label="Date of Meeting",
        value_type=ValueType.DATE,
        required=True,
        locator=_cell("Date of Meeting:"),
    ),
    FieldDefinition(
        key="tbm_time_from",
        label="Time From (Hrs)",
        value_type=ValueType.TIME,
        required=True,
        locator=LocatorRule(
            anchor=r"\*\*Time of Meeting:\*\* \| From",
            until=r"(?=[ ]Hrs\.)",
        ),
        blank=SHORT_BLANK_TOKEN,
    ),
    FieldDefinition(
        key="tbm_time_to",
        label="Time To (Hrs)",
        value_type=ValueType.TIME,
        required=True,
        locator=LocatorRule(
            anchor=r"\*\*Time of Meeting:\*\* \| From [^\n]*? Hrs\. To",
            until=r"(?=[ ]Hrs\.)",
        ),
        blank=SHORT_BLANK_TOKEN,
    ),
    *_checklist("tbm_subject", TBM_SUBJECTS),
    FieldDefinition(
        key="tbm_supervisor_name",
        label="Supervisor Name",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_cell("Name :"),
    ),
    FieldDefinition(
        key="tbm_supervisor_signature",
        label="Supervisor Signature",
        value_type=ValueType.SIGNATURE,
        required=True,
        locator=_cell("Signature :"),
    ),
    FieldDefinition(
        key="tbm_supervisor_designation",
        label="Supervisor Designation",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_cell("Designation :"),
    ),
    FieldDefinition(
        key="tbm_supervisor_date",
        label="Supervisor Date",
        value_type=ValueType.DATE,
        required=True,
        locator=_cell("Date :"),
    ),
    *_person_rows("tbm_employee", "Employee", TBM_ATTENDEE_ROWS, r"^## Attendance"),
)


VIDEO_SURVEILLANCE_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition(
        key="vss_project_location",
        label="Project/Location",
        value_type=ValueType.SINGLE_SELECT,
        required=True,
        options_source="locations",
        locator=_cell("Project/ Location :"),
    ),
    FieldDefinition(
        key="vss_contractor",
        label="Contractor",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_cell("Contractor :"),
    ),
    FieldDefinition(
        key="vss_ptw_no",
        label="PTW No",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_cell("PTW No :"),
    ),
    *(
        FieldDefinition(
            key=f"vss_serial_{index}",
            label=f"VSS Serial No {index}",
            value_type=ValueType.SHORT_TEXT,
            locator=_cell(f"VSS Serial No {index} :"),
        )
        for index in range(1, 4)
    ),
    *_checklist("vss_inspection", VSS_INSPECTION_ITEMS),
    *(
        FieldDefinition(
            key=f"vss_supervisor_signature_{day.lower()}",
            label=f"Supervisor Signature ({day})",
            value_type=ValueType.SIGNATURE,
            locator=_row(day, scope=r"^## Supervisor Daily Sign-off"),
        )
        for day in WEEKDAYS
    ),
)


WORK_AT_HEIGHT_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition(
        key="wah_date",
        label="Date",
        value_type=ValueType.DATE,
        required=True,
        locator=_cell("DATE :"),
    ),
    FieldDefinition(
        key="wah_location_block",
        label="Location/Block",
        value_type=ValueType.SINGLE_SELECT,
        options_source="locations",
        locator=_cell("Location/ Block"),
    ),
    FieldDefinition(
        key="wah_wp_no",
        label="WP No",
        value_type=ValueType.SHORT_TEXT,
        locator=_cell("WP No. (If applicable)"),
    ),
    *_person_rows("wah_personnel", "Personnel", WAH_PERSONNEL_ROWS, r"^## Authorised Personnel"),
    FieldDefinition(
        key="wah_supervisor_name",
        label="Supervisor Name",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_cell("Name of Supervisor / Foreman"),
    ),
    FieldDefinition(
        key="wah_supervisor_signature",
        label="Supervisor Signature",
        value_type=ValueType.SIGNATURE,
        required=True,
        locator=_cell("Signature"),
    ),
    FieldDefinition(
        key="wah_supervisor_date",
        label="Supervisor Date",
        value_type=ValueType.DATE,
        required=True,
        locator=_cell("Date"),
    ),
)


PERMIT_TO_WORK_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition(
        key="ptw_permit_no",
        label="Permit No",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_cell("Permit No."),
    ),
    FieldDefinition(
        key="ptw_project_title",
        label="Project Title",
        value_type=ValueType.SINGLE_SELECT,
        required=True,
        options_source="jobs",
        locator=_cell("Project Title"),
    ),
    FieldDefinition(
        key="ptw_task_description",
        label="Task Description",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_inline("Task Description"),
    ),
    FieldDefinition(
        key="ptw_location_wah",
        label="Location of WAH",
        value_type=ValueType.SINGLE_SELECT,
        required=True,
        options_source="locations",
        locator=_inline("Location of WAH"),
    ),
    FieldDefinition(
        key="ptw_start_date",
        label="Start Date",
        value_type=ValueType.DATE,
        required=True,
        locator=_inline("Start Date"),
    ),
    FieldDefinition(
        key="ptw_end_date",
        label="End Date",
        value_type=ValueType.DATE,
        required=True,
        locator=_inline("End Date"),
    ),
    FieldDefinition(
        key="ptw_num_supervisors",
        label="No. of Supervisors",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_inline("No. of Supervisor"),
        blank=SHORT_BLANK_TOKEN,
    ),
    FieldDefinition(
        key="ptw_num_workers",
        label="No. of Workers",
        value_type=ValueType.SHORT_TEXT,
        required=True,
        locator=_inline("No. of Workers"),
        blank=SHORT_BLANK_TOKEN,
    ),
    *_checklist("ptw_control", PTW_CONTROL_MEASURES),
    *_sign_off("ptw_s1", "Section 1", 1),
    *_sign_off("ptw_s2", "Section 2", 2),
    *_sign_off("ptw_s3", "Section 3", 3),
    *(
        FieldDefinition(
            key=f"ptw_daily_{day}_date",
            label=f"Day {day} - Date & Time",
            value_type=ValueType.SHORT_TEXT,
            locator=_row(f"Day {day}", scope=_section(4)),
        )
        for day in range(2, 8)
    ),
    *(
        FieldDefinition(
            key=key,
            label=label,
            value_type=ValueType.CHECKBOX,
            locator=_row(f"{index} | {row_text}", scope=_section(5)),
        )
        for index, (key, label, row_text) in enumerate(PTW_COMPLETION_STATUSES, start=1)
    ),
    FieldDefinition(
        key="ptw_s5_remarks",
        label="Completion Remarks",
        value_type=ValueType.SHORT_TEXT,
        locator=_inline("Remarks"),
    ),
    *_sign_off("ptw_s5", "Section 5", 5),
)


FIELD_SPECS: Mapping[TemplateKind, tuple[FieldDefinition, ...]] = MappingProxyType(
    {
        TemplateKind.TOOLBOX_MEETING: TOOLBOX_MEETING_FIELDS,
        TemplateKind.VIDEO_SURVEILLANCE_CHECKLIST: VIDEO_SURVEILLANCE_FIELDS,
        TemplateKind.WORK_AT_HEIGHT_PERMIT: WORK_AT_HEIGHT_FIELDS,
        TemplateKind.PERMIT_TO_WORK: PERMIT_TO_WORK_FIELDS,
        TemplateKind.UNKNOWN: (),
    }
)
