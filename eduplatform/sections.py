"""
Section dispatch table

Each section pairs a loader (sequential transport calls, returns the data the
view needs) with a renderer (data to element tree). The controller looks
sections up here by name; adding a section means adding one entry.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from . import views
from .dom import Element

TEACHER = ("teacher",)
STUDENT = ("student",)
EVERYONE = ("teacher", "student")


@dataclass(frozen=True)
class Section:
    title: str
    icon: str
    roles: Tuple[str, ...]
    load: Callable[[Any], Awaitable[Any]]
    render: Callable[[Any, Any], Element]
    resource_type: Optional[str] = None
    after: Optional[Callable[[Any, Any], Awaitable[None]]] = None

    def allows(self, role: str) -> bool:
        return role in self.roles


# ----------------------
# Loaders
# ----------------------
async def load_dashboard(app):
    stats = await app.api.get_dashboard_stats()
    fees = []
    if not app.current_user.is_teacher:
        fees = await app.api.get_fee_status()
    return stats, fees


def resource_loader(resource_type: str):
    async def load(app):
        return await app.api.get_resources(resource_type)

    return load


async def load_schedules(app):
    return await app.api.get_schedules()


async def load_students(app):
    return await app.api.get_students()


async def load_fees(app):
    if app.current_user.is_teacher:
        records = await app.api.get_fees()
        stats = await app.api.get_fee_stats()
        roster = await app.api.get_students()
        return records, stats, roster
    return await app.api.get_fee_status()


async def load_results(app):
    results = await app.api.get_results()
    if app.current_user.is_teacher:
        ranking = await app.api.get_leaderboard()
        roster = await app.api.get_students()
        return results, ranking, roster
    return results


async def load_announcements(app):
    return await app.api.get_announcements()


async def load_profile(app):
    return await app.api.get_profile()


async def load_nothing(app):
    return None


# ----------------------
# Renderers
# ----------------------
def render_dashboard(app, data):
    stats, fees = data
    return views.dashboard(app, app.current_user, stats, fees)


def resource_renderer(resource_type: str):
    def render(app, items):
        return views.resources(app, app.current_user, resource_type, items)

    return render


def render_fees(app, data):
    if app.current_user.is_teacher:
        records, stats, roster = data
        return views.fees_teacher(app, records, stats, roster)
    return views.fees_student(app, data)


def render_results(app, data):
    if app.current_user.is_teacher:
        results, ranking, roster = data
        return views.results_teacher(app, app.current_user, results, ranking, roster)
    return views.results_student(app, app.current_user, data)


def render_profile(app, user):
    return views.profile(app, user)


# ----------------------
# After-render hooks
# ----------------------
async def mark_notices_read(app, items):
    await app.mark_notices_read(items)


async def refresh_header(app, user):
    app.update_user(user)


SECTIONS: Dict[str, Section] = {
    "dashboard": Section("Dashboard", "home", EVERYONE, load_dashboard, render_dashboard),
    "notes": Section("Notes", "book", EVERYONE, resource_loader("note"), resource_renderer("note"), "note"),
    "questions": Section("Questions", "question-circle", EVERYONE, resource_loader("question"),
                         resource_renderer("question"), "question"),
    "books": Section("Books", "book-open", EVERYONE, resource_loader("book"), resource_renderer("book"), "book"),
    "schedule": Section("Schedule", "calendar-alt", EVERYONE, load_schedules,
                        lambda app, items: views.schedules(app, app.current_user, items)),
    "students": Section("Students", "users", TEACHER, load_students, lambda app, items: views.students(app, items)),
    "fees": Section("Fees", "money-bill", EVERYONE, load_fees, render_fees),
    "results": Section("Results", "clipboard-list", EVERYONE, load_results, render_results),
    "announcements": Section("Announcements", "bullhorn", TEACHER, load_announcements,
                             lambda app, items: views.announcements(app, app.current_user, items)),
    "notices": Section("Notice Board", "bell", STUDENT, load_announcements,
                       lambda app, items: views.notices(app, app.current_user, items),
                       after=mark_notices_read),
    "profile": Section("Profile", "user", EVERYONE, load_profile, render_profile, after=refresh_header),
    "settings": Section("Settings", "cog", EVERYONE, load_nothing, lambda app, _: views.settings(app, app.theme)),
}

RESOURCE_SECTIONS = {name: s.resource_type for name, s in SECTIONS.items() if s.resource_type}


def sections_for(role: str):
    return [(name, s) for name, s in SECTIONS.items() if s.allows(role)]
