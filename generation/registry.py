"""
Action registry: maps action slugs to their template file name, the
automation that prepares their data and, optionally, a hand-written field
schema. Actions without fields get their schema from the template itself.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .exceptions import UnknownAction
from .schema import FieldSpec

MEETING_TYPE_OPTIONS = ("Virtual", "In Person", "None")


@dataclass(frozen=True)
class ActionConfig:
    slug: str
    template: str
    automation: str
    fields: Tuple[FieldSpec, ...] = ()
    # input key the time chain starts from
    time_seed: Optional[str] = None

    @property
    def label(self) -> str:
        return self.slug.replace("-", " ").title()


ARRANGE_VENUE_FIELDS = (
    FieldSpec("Date_of_FR", "date", "Date of FR", "Dates"),
    FieldSpec("Event_Date", "date", "Event Date", "Dates"),
    FieldSpec("Claimant_Name", "text", "Claimant Name", "Claimant Details", placeholder="Full name"),
    FieldSpec("Event_Type", "text", "Event Type", "Claimant Details"),
    FieldSpec("Event_Time", "time", "Event Time", "Times"),
    FieldSpec("Start_Time_For_Booking_Venue", "time", "Start Time for Booking Venue", "Times"),
    FieldSpec("Venue_Name", "text", "Venue Name", "Venue Information", placeholder="Name"),
    FieldSpec("Venue_Number", "text", "Venue Number", "Venue Information", placeholder="Number"),
    FieldSpec("Venue_Address", "text", "Venue Address", "Venue Information", placeholder="Full address"),
    FieldSpec(
        "Reception_Person_Name", "text", "Reception Person Name", "Venue Information",
        placeholder="Contact name",
    ),
    FieldSpec(
        "Meeting_Type", "select", "Meeting Type", "Distance & Options",
        options=MEETING_TYPE_OPTIONS, blank_allowed=True,
    ),
    FieldSpec(
        "Distance_In_Kilometres", "number", "Distance in Kilometres", "Distance & Options",
        placeholder="e.g. 5.2", full_width=True,
    ),
    FieldSpec("logo", "image", "Logo / Image", "Attachments", full_width=True),
    # filled by the derivation pipeline
    FieldSpec("Event_Day", "text", "Event Day", "Dates", computed=True),
    FieldSpec("Country_Standard_Time", "text", "Country Standard Time", "General", computed=True),
    FieldSpec("Country_Code", "text", "Country Code", "General", computed=True),
    FieldSpec("Country_Standard_Time_Short", "text", "Country Standard Time Short", "General", computed=True),
    FieldSpec("COUNTRY_CURRENCY_SHORT_NAME", "text", "Country Currency", "General", computed=True),
    FieldSpec("End_Time_For_Booking_Venue", "time", "End Time for Booking Venue", "Times", computed=True),
    FieldSpec("Start_Time_For_Report_Preparation", "time", "Start Time for Report Preparation", "Times", computed=True),
    FieldSpec("End_Time_For_Report_Preparation", "time", "End Time for Report Preparation", "Times", computed=True),
    FieldSpec("Total_Time", "text", "Total Time", "Times", computed=True),
    FieldSpec("Service_Time", "text", "Service Time", "Times", computed=True),
    FieldSpec("Distance_In_Miles", "number", "Distance in Miles", "Distance & Options", computed=True),
)


def _action(slug: str, template: str, automation: str, fields=(), time_seed=None) -> Tuple[str, ActionConfig]:
    return slug, ActionConfig(slug, template, automation, tuple(fields), time_seed)


TEMPLATE_REGISTRY: Dict[str, ActionConfig] = dict([
    _action(
        "arrange-venue", "arrangeVenue.docx", "arrangeVenue", ARRANGE_VENUE_FIELDS,
        time_seed="Start_Time_For_Booking_Venue",
    ),
    _action("cancel-venue", "cancelVenue.docx", "cancelVenue", time_seed="Start_Time_For_Cancel_Venue"),
    _action(
        "arrange-transportation", "arrangeTransportation.docx", "arrangeTransportation",
        time_seed="Start_Time_For_Arrange_Transportation",
    ),
    _action(
        "cancel-transportation", "cancelTransportation.docx", "cancelTransportation",
        time_seed="Start_Time_For_Cancel_Transportation",
    ),
    _action("arrange-accommodation", "arrangeAccommodation.docx", "arrangeAccommodation"),
    _action("cancel-accommodation", "cancelAccommodation.docx", "cancelAccommodation"),
    _action("arrange-notary", "arrangeNotary.docx", "arrangeNotary"),
    _action("cancel-notary", "cancelNotary.docx", "cancelNotary"),
    _action("arrange-ent-test", "arrangeENTTest.docx", "arrangeENTTest"),
    _action("cancel-ent-test", "cancelENTTest.docx", "cancelENTTest"),
    _action("no-transportation-needed", "noTransportationNeeded.docx", "noTransportationNeeded"),
    _action("contact-claimant", "contactClaimant.docx", "contactClaimant"),
    _action("fa-traveled-to-attend", "faTraveledToAttend.docx", "faTraveledToAttend"),
    _action("fa-booked-flight-ticket", "faBookedFlightTicket.docx", "faBookedFlightTicket"),
    _action("fa-cancelled-flight-ticket", "faCancelledFlightTicket.docx", "faCancelledFlightTicket"),
    _action("fa-traveled-back", "faTraveledBack.docx", "faTraveledBack"),
    _action("fa-attend", "faAttend.docx", "faAttend"),
])


def get_action(slug: str) -> ActionConfig:
    try:
        return TEMPLATE_REGISTRY[slug]
    except KeyError:
        raise UnknownAction(slug) from None


def action_choices():
    return [(slug, cfg.label) for slug, cfg in TEMPLATE_REGISTRY.items()]
