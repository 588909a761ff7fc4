# campus_guide/campus.py
"""University personas, campus locations, FAQ lists and upcoming events."""
import logging
from typing import Any, Dict, List, Optional

from .schemas import CampusEvent, FaqItem, MapLocation, UniversitySummary

logger = logging.getLogger(__name__)

DEFAULT_UNIVERSITY_ID = "uw"

# Coordinates are (lat, lng).
UNIVERSITIES: Dict[str, Dict[str, Any]] = {
    "uw": {
        "name": "University of Waterloo",
        "short_name": "UW",
        "persona_name": "Goosey",
        "logo_emoji": "🪿",
        "theme_color": "yellow-400",
        "style_guide": (
            "Nerdy, upbeat and a little chaotic. Co-op and engineering jokes "
            "are welcome. Warn people about the geese."
        ),
        "locations": [
            {"name": "Dana Porter Library", "coordinates": (43.4698, -80.5425),
             "description": "Main arts and social sciences library, quiet upper floors."},
            {"name": "Student Life Centre", "coordinates": (43.4714, -80.5454),
             "description": "Food court, Turnkey desk and club offices."},
            {"name": "Davis Centre", "coordinates": (43.4729, -80.5422),
             "description": "Math and engineering library, 24h study spaces."},
            {"name": "Columbia Icefield", "coordinates": (43.4793, -80.5484),
             "description": "Gym, fields and intramurals."},
        ],
        "faq": [
            {"question": "How do I get my WatCard?",
             "answer": "Bring photo ID to WatCard Office in the Student Life Centre."},
            {"question": "Where can I study late at night?",
             "answer": "The Davis Centre library and study halls stay open 24 hours during term."},
            {"question": "How do I take the bus?",
             "answer": "Your U-Pass on your WatCard covers GRT buses and the ION LRT."},
        ],
        "events": [
            {"title": "Orientation Week Kickoff", "date": "2026-09-01",
             "description": "Meet your Orientation Leaders and grab your first free T-shirt.",
             "location": "Student Life Centre"},
            {"title": "Clubs and Societies Days", "date": "2026-09-10",
             "description": "Over 200 clubs set up tables. Bring a pen for sign-up sheets.",
             "location": "Student Life Centre"},
            {"title": "Warrior Weekend", "date": "2026-09-19",
             "description": "Free late-night food, games and movies.",
             "location": "Davis Centre"},
        ],
    },
    "uoft": {
        "name": "University of Toronto",
        "short_name": "U of T",
        "persona_name": "Blue",
        "logo_emoji": "🦫",
        "theme_color": "blue-800",
        "style_guide": (
            "Calm and well-read with a dry sense of humour. Downtown city "
            "tips over campus trivia."
        ),
        "locations": [
            {"name": "Robarts Library", "coordinates": (43.6645, -79.3996),
             "description": "The concrete peacock. Huge humanities collection."},
            {"name": "Hart House", "coordinates": (43.6638, -79.3950),
             "description": "Gym, pool, theatre and quiet reading rooms."},
            {"name": "Sidney Smith Hall", "coordinates": (43.6623, -79.3985),
             "description": "Arts and Science registrar and many first-year lectures."},
        ],
        "faq": [
            {"question": "How do I get my TCard?",
             "answer": "Upload a photo online, then pick it up at the TCard Office in Robarts."},
            {"question": "Which gym can I use?",
             "answer": "Hart House and the Athletic Centre are both included in your fees."},
            {"question": "How do I get around downtown?",
             "answer": "Use the TTC subway; St. George and Queen's Park stations are closest."},
        ],
        "events": [
            {"title": "Hart House Welcome Fair", "date": "2026-09-03",
             "description": "Tour the gym, pool and reading rooms.",
             "location": "Hart House"},
            {"title": "Clubs Fair", "date": "2026-09-11",
             "description": "Find your people among hundreds of student groups.",
             "location": "Sidney Smith Hall"},
        ],
    },
    "mac": {
        "name": "McMaster University",
        "short_name": "Mac",
        "persona_name": "Marty",
        "logo_emoji": "〽️",
        "theme_color": "red-800",
        "style_guide": "Warm, spirited and community-minded. Loves a good cheer.",
        "locations": [
            {"name": "Mills Memorial Library", "coordinates": (43.2626, -79.9180),
             "description": "Main library with group study rooms."},
            {"name": "McMaster University Student Centre", "coordinates": (43.2634, -79.9176),
             "description": "Food, clubs and the MSU offices."},
            {"name": "David Braley Athletic Centre", "coordinates": (43.2656, -79.9178),
             "description": "Pulse gym and recreation."},
        ],
        "faq": [
            {"question": "What is Welcome Week?",
             "answer": "A week of orientation events run by faculty and residence reps before classes start."},
            {"question": "Where is the Pulse gym?",
             "answer": "Inside the David Braley Athletic Centre on the north side of campus."},
            {"question": "How do I get to downtown Hamilton?",
             "answer": "HSR buses from the campus terminal run downtown; your PRESTO U-Pass covers them."},
        ],
        "events": [
            {"title": "Welcome Week Faculty Day", "date": "2026-09-02",
             "description": "Meet your faculty reps and classmates.",
             "location": "McMaster University Student Centre"},
            {"title": "Pulse Open House", "date": "2026-09-09",
             "description": "Free fitness classes all day.",
             "location": "David Braley Athletic Centre"},
        ],
    },
    "western": {
        "name": "Western University",
        "short_name": "Western",
        "persona_name": "J.W.",
        "logo_emoji": "🐎",
        "theme_color": "purple-700",
        "style_guide": "Social, energetic and proud. Purple everything.",
        "locations": [
            {"name": "Weldon Library", "coordinates": (43.0096, -81.2736),
             "description": "Main library, busy during exams."},
            {"name": "University Community Centre", "coordinates": (43.0083, -81.2761),
             "description": "The UCC: food, the Spoke and student services."},
            {"name": "Western Student Recreation Centre", "coordinates": (43.0038, -81.2735),
             "description": "Gym, pool and climbing wall."},
        ],
        "faq": [
            {"question": "What is O-Week?",
             "answer": "Western's orientation week, led by sophs from your residence and faculty."},
            {"question": "Where do I eat on campus?",
             "answer": "The UCC has the most options; residences have their own dining halls."},
            {"question": "How do I get downtown?",
             "answer": "LTC routes 2, 6 and 13 run from campus; your bus pass is in your student fees."},
        ],
        "events": [
            {"title": "O-Week Concert", "date": "2026-09-05",
             "description": "Headliner show for first-years.",
             "location": "University Community Centre"},
            {"title": "Rec Centre Try-It Day", "date": "2026-09-12",
             "description": "Climbing wall, spin and yoga taster sessions.",
             "location": "Western Student Recreation Centre"},
        ],
    },
    "queens": {
        "name": "Queen's University",
        "short_name": "Queen's",
        "persona_name": "Boo Hoo",
        "logo_emoji": "👑",
        "theme_color": "red-700",
        "style_guide": "Traditional, tight-knit and proud of the tricolour.",
        "locations": [
            {"name": "Stauffer Library", "coordinates": (44.2281, -76.4959),
             "description": "Main library with 24h study space during exams."},
            {"name": "Athletics and Recreation Centre", "coordinates": (44.2284, -76.4966),
             "description": "The ARC: gym, pool and food court."},
            {"name": "John Deutsch University Centre", "coordinates": (44.2285, -76.4952),
             "description": "The JDUC: student government, pub and services."},
        ],
        "faq": [
            {"question": "What is a Gael?",
             "answer": "Orientation leaders are called Gaels; first-years are frosh."},
            {"question": "Where can I work out?",
             "answer": "The ARC on Union Street is included in your student fees."},
            {"question": "Is Kingston walkable?",
             "answer": "Yes. Most students walk or bike; Kingston Transit covers longer trips."},
        ],
        "events": [
            {"title": "Frosh Week Sing-Along", "date": "2026-09-04",
             "description": "Learn the Oil Thigh with your Gaels.",
             "location": "John Deutsch University Centre"},
            {"title": "ARC Open House", "date": "2026-09-10",
             "description": "Free drop-in classes and facility tours.",
             "location": "Athletics and Recreation Centre"},
        ],
    },
    "tmu": {
        "name": "Toronto Metropolitan University",
        "short_name": "TMU",
        "persona_name": "Bold",
        "logo_emoji": "🔷",
        "theme_color": "blue-600",
        "style_guide": "Fast, urban and practical. Knows every shortcut downtown.",
        "locations": [
            {"name": "Student Learning Centre", "coordinates": (43.6577, -79.3806),
             "description": "Open study floors on Yonge Street."},
            {"name": "Mattamy Athletic Centre", "coordinates": (43.6621, -79.3801),
             "description": "The old Maple Leaf Gardens: gym and rink."},
            {"name": "Library Building", "coordinates": (43.6578, -79.3808),
             "description": "Main library connected to the SLC."},
        ],
        "faq": [
            {"question": "Where is campus exactly?",
             "answer": "Around Yonge and Gould, next to Dundas subway station."},
            {"question": "Where can I study?",
             "answer": "The Student Learning Centre and the Library Building are connected."},
            {"question": "Is there a campus gym?",
             "answer": "Yes, the Mattamy Athletic Centre and the Recreation and Athletics Centre."},
        ],
        "events": [
            {"title": "Week of Welcome", "date": "2026-09-02",
             "description": "Campus tours, games and free food on Gould Street.",
             "location": "Student Learning Centre"},
            {"title": "Mattamy Skate Night", "date": "2026-09-16",
             "description": "Free skate rentals on the old Leafs ice.",
             "location": "Mattamy Athletic Centre"},
        ],
    },
}


def get_university(university_id: Optional[str]) -> Dict[str, Any]:
    """Profile for `university_id`; unknown ids fall back to Waterloo."""
    profile = UNIVERSITIES.get(university_id or "")
    if profile is None:
        logger.warning("Unknown university %r, using %s", university_id, DEFAULT_UNIVERSITY_ID)
        profile = UNIVERSITIES[DEFAULT_UNIVERSITY_ID]
        university_id = DEFAULT_UNIVERSITY_ID
    return {"id": university_id, **profile}


def list_universities() -> List[UniversitySummary]:
    return [
        UniversitySummary(
            id=uid,
            name=p["name"],
            short_name=p["short_name"],
            persona_name=p["persona_name"],
            logo_emoji=p["logo_emoji"],
            theme_color=p["theme_color"],
        )
        for uid, p in UNIVERSITIES.items()
    ]


def search_faq(university_id: Optional[str], query: str = "") -> List[FaqItem]:
    """FAQ items whose question or answer contains `query` (case-insensitive)."""
    items = [FaqItem(**f) for f in get_university(university_id)["faq"]]
    q = (query or "").strip().lower()
    if not q:
        return items
    return [i for i in items if q in i.question.lower() or q in i.answer.lower()]


def list_events(university_id: Optional[str]) -> List[CampusEvent]:
    """Upcoming events for the university, soonest first."""
    events = [CampusEvent(**e) for e in get_university(university_id).get("events", [])]
    return sorted(events, key=lambda e: e.date)


def find_location(university: Dict[str, Any], name: str) -> Optional[MapLocation]:
    """Match a location by name in either direction, ignoring case."""
    wanted = (name or "").strip().lower()
    if not wanted:
        return None

    for loc in university.get("locations", []):
        loc_name = loc["name"].lower()
        if wanted in loc_name or loc_name in wanted:
            coords = loc.get("coordinates")
            if not coords:
                return None
            return MapLocation(lat=coords[0], lng=coords[1], name=loc["name"])
    return None
