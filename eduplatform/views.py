"""
Rendering helpers, one group per entity

Every function returns an ``Element`` tree. Controls are bound to controller
methods through closures; nothing reaches the controller by name. Role
gating happens here and is presentation only.
"""
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .dom import Element, h
from .schemas import (
    RESOURCE_TYPES,
    Announcement,
    DashboardStats,
    FeeRecord,
    FeeStats,
    LeaderboardEntry,
    Resource,
    Result,
    Schedule,
    Student,
    User,
    ref_id,
    ref_name,
)

PLACEHOLDER_AVATAR = "https://via.placeholder.com/40"
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

NOTIFICATION_ICONS = {
    "success": "check-circle",
    "error": "exclamation-circle",
    "warning": "exclamation-triangle",
    "info": "info-circle",
}


# ----------------------
# Formatting
# ----------------------
def format_file_size(size: Optional[int]) -> str:
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, i), 2)
    return f"{value:g} {units[i]}"


def format_date(value: Any) -> str:
    if value in (None, ""):
        return "-"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, (datetime, date)):
        return value.strftime("%b %d, %Y")
    return str(value)


def format_amount(amount: Optional[float]) -> str:
    return f"{amount or 0:,.2f}"


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def plural_title(resource_type: str) -> str:
    return capitalize(resource_type) + "s"


def icon(name: str) -> Element:
    return h("i", class_=f"fas fa-{name}")


# ----------------------
# Shared states
# ----------------------
def loading_state() -> Element:
    return h(
        "div",
        h("div", icon("spinner fa-spin"), class_="loading-spinner"),
        h("p", "Loading content..."),
        class_="loading-state",
    )


def error_state(title: str, message: str, on_reload=None) -> Element:
    return h(
        "div",
        icon("exclamation-triangle"),
        h("h2", title),
        h("p", message),
        on_reload and h(
            "button", icon("refresh"), " Reload",
            class_="btn btn--primary", data_action="reload", on_click=on_reload,
        ),
        class_="error-state",
    )


def empty_state(icon_name: str, title: str, text: str) -> Element:
    return h("div", icon(icon_name), h("h3", title), h("p", text), class_="empty-state")


def section_not_found() -> Element:
    return h(
        "div",
        icon("exclamation-triangle"),
        h("h2", "Section Not Found"),
        h("p", "The requested section could not be found."),
        class_="error-state",
    )


def access_restricted() -> Element:
    return h(
        "div",
        icon("lock"),
        h("h2", "Access Restricted"),
        h("p", "This section is not available for your account."),
        class_="error-state",
    )


def notification(message: str, type: str, on_close) -> Element:
    return h(
        "div",
        h("div", icon(NOTIFICATION_ICONS.get(type, NOTIFICATION_ICONS["info"])), h("span", message),
          class_="notification-content"),
        h("button", icon("times"), class_="notification-close", data_action="close-notification",
          on_click=on_close),
        class_=f"notification notification--{type}",
        role="alert",
    )


def section_header(title: str, *actions: Any) -> Element:
    return h("div", h("h1", title), *actions, class_="section-header")


def delete_button(label: str, action: str, handler) -> Element:
    return h("button", icon("trash"), class_="btn-icon btn--danger", title=f"Delete {label}",
             data_action=action, on_click=handler)


def field(label: str, name: str, type: str = "text", required: bool = False, **attrs: Any) -> Element:
    if type == "textarea":
        control = h("textarea", name=name, class_="form-control", rows=3, required=required, **attrs)
    else:
        control = h("input", type=type, name=name, class_="form-control", required=required, **attrs)
    return h("div", h("label", label, class_="form-label"), control, class_="form-group")


def select(label: str, name: str, options: List[tuple], value: Any = "", required: bool = False) -> Element:
    return h(
        "div",
        h("label", label, class_="form-label"),
        h(
            "select",
            [h("option", text, value=val) for val, text in options],
            name=name, class_="form-control", required=required, value=value, data_default=value,
        ),
        class_="form-group",
    )


def submit_button(label: str, icon_name: str = "plus") -> Element:
    return h("button", icon(icon_name), f" {label}", type="submit", class_="btn btn--primary")


# ----------------------
# Login
# ----------------------
def login_screen(app, mode: str = "login", error: Optional[str] = None) -> Element:
    if mode == "register":
        form = h(
            "form",
            field("Full Name", "name", required=True),
            field("Email", "email", type="email", required=True),
            field("Password", "password", type="password", required=True),
            field("Phone", "phone", type="tel"),
            select("I am a", "role", [("student", "Student"), ("teacher", "Teacher")], value="student"),
            submit_button("Create Account", "user-plus"),
            h("p", error or "", class_="form-error", id="registerError", hidden=error is None),
            id="registerForm", on_submit=app.handle_register,
        )
        switch = h("a", "Already have an account? Sign in", href="#", data_action="show-login",
                   on_click=lambda e: app.show_login())
    else:
        form = h(
            "form",
            field("Email", "email", type="email", required=True, id="loginEmail"),
            field("Password", "password", type="password", required=True, id="loginPassword"),
            submit_button("Sign In", "sign-in-alt"),
            h("p", error or "", class_="form-error", id="loginError", hidden=error is None),
            id="loginForm", on_submit=app.handle_login,
        )
        switch = h("a", "New here? Create an account", href="#", data_action="show-register",
                   on_click=lambda e: app.show_login(mode="register"))
    return h(
        "div",
        h("div", h("h1", "EduPlatform"), h("p", "Notes, classes and results in one place"), class_="login-brand"),
        form,
        switch,
        class_="login-card",
    )


# ----------------------
# Chrome
# ----------------------
def header(app, user: User, theme: str) -> Element:
    return h(
        "header",
        h("button", icon("bars"), id="mobileSidebarToggle", data_action="toggle-sidebar",
          on_click=lambda e: app.toggle_mobile_sidebar()),
        h("h2", app.document.title, id="pageTitle"),
        h("input", type="search", id="searchInput", class_="form-control", placeholder="Search...",
          on_input=lambda e: app.handle_search_input(e.data.get("value", ""))),
        h("button", icon("sun" if theme == "dark" else "moon"), id="themeToggle", data_action="toggle-theme",
          on_click=lambda e: app.toggle_theme()),
        h(
            "div",
            h("img", src=app.image_url(user.profile_image) or PLACEHOLDER_AVATAR, alt=user.name, id="userAvatar"),
            h("span", user.name, id="userName"),
            h("span", capitalize(user.role), id="userInfo"),
            class_="user-menu",
        ),
        h("button", icon("sign-out-alt"), " Logout", id="logoutBtn", data_action="logout",
          on_click=lambda e: app.handle_logout()),
        class_="app-header",
    )


def sidebar(app, sections: List[tuple], active: str, unread: int = 0, open: bool = False) -> Element:
    items = []
    for name, section in sections:
        badge = None
        if name == "notices" and unread > 0:
            badge = h("span", str(unread), class_="badge", data_badge="unread")
        items.append(
            h(
                "a",
                icon(section.icon), f" {section.title}", badge,
                href="#", class_="sidebar-item active" if name == active else "sidebar-item",
                data_section=name, key=name,
                on_click=lambda e, name=name: app.navigate(name),
            )
        )
    return h("nav", items, id="sidebar", class_="sidebar open" if open else "sidebar")


# ----------------------
# Dashboard
# ----------------------
def stat_card(value: Any, label: str, icon_name: str, css: str) -> Element:
    return h(
        "div",
        h("div", icon(icon_name), class_=f"stat-icon {css}"),
        h("div", h("h3", str(value)), h("p", label), class_="stat-content"),
        class_="stat-card",
    )


def fee_alerts(fees: List[FeeRecord]) -> List[Element]:
    overdue = [f for f in fees if f.status == "overdue"]
    pending = [f for f in fees if f.status == "pending"]
    alerts = []
    if overdue:
        alerts.append(h(
            "div", icon("exclamation-circle"),
            f" You have {len(overdue)} overdue fee payment{'s' if len(overdue) != 1 else ''}"
            f" totalling {format_amount(sum(f.amount for f in overdue))}.",
            class_="alert alert--danger", data_alert="overdue",
        ))
    if pending:
        alerts.append(h(
            "div", icon("clock"),
            f" You have {len(pending)} pending fee payment{'s' if len(pending) != 1 else ''}.",
            class_="alert alert--warning", data_alert="pending",
        ))
    return alerts


def dashboard(app, user: User, stats: DashboardStats, fees: Optional[List[FeeRecord]] = None) -> Element:
    if user.is_teacher:
        cards = [
            stat_card(stats.notes, "Notes", "book", "notes-icon"),
            stat_card(stats.questions, "Questions", "question-circle", "questions-icon"),
            stat_card(stats.books, "Books", "book-open", "books-icon"),
            stat_card(stats.students, "Students", "users", "students-icon"),
            stat_card(stats.schedules, "Schedules", "calendar-alt", "schedule-icon"),
        ]
        actions = [
            h("button", icon("plus"), f" Add {capitalize(t)}", class_="btn btn--primary",
              data_action="create-resource", data_type=t,
              on_click=lambda e, t=t: app.show_resource_modal(t))
            for t in RESOURCE_TYPES
        ] + [
            h("button", icon("calendar-plus"), " Create Schedule", class_="btn btn--secondary",
              data_action="create-schedule", on_click=lambda e: app.navigate("schedule")),
            h("button", icon("bullhorn"), " Post Announcement", class_="btn btn--secondary",
              data_action="create-announcement", on_click=lambda e: app.show_announcement_modal()),
            h("button", icon("money-bill"), " Manage Fees", class_="btn btn--secondary",
              data_action="manage-fees", on_click=lambda e: app.navigate("fees")),
        ]
        subtitle = "Here's an overview of your teaching platform."
        alerts = []
    else:
        cards = [
            stat_card(stats.total_resources, "Total Resources", "book", "resources-icon"),
            stat_card(stats.upcoming_schedules, "Upcoming Classes", "calendar-alt", "schedule-icon"),
        ]
        actions = [
            h("button", icon("book"), " Browse Notes", class_="btn btn--primary",
              data_action="browse-notes", on_click=lambda e: app.navigate("notes")),
            h("button", icon("question-circle"), " Practice Questions", class_="btn btn--primary",
              data_action="browse-questions", on_click=lambda e: app.navigate("questions")),
            h("button", icon("calendar"), " View Schedule", class_="btn btn--secondary",
              data_action="view-schedule", on_click=lambda e: app.navigate("schedule")),
            h("button", icon("bell"), " Notice Board", class_="btn btn--secondary",
              data_action="view-notices", on_click=lambda e: app.navigate("notices")),
        ]
        subtitle = "Continue your learning journey."
        alerts = fee_alerts(fees or [])
    return h(
        "div",
        h("div", h("h1", f"Welcome back, {user.name}!"), h("p", subtitle), class_="dashboard-header"),
        alerts,
        h("div", cards, class_="stats-grid"),
        h("div", h("h2", "Quick Actions"), h("div", actions, class_="action-buttons"), class_="quick-actions"),
        class_="dashboard",
    )


# ----------------------
# Resources
# ----------------------
def resource_card(app, user: User, resource: Resource) -> Element:
    return h(
        "div",
        h(
            "div",
            h("h3", resource.title),
            user.is_teacher and h(
                "div",
                delete_button("resource", "delete-resource", lambda e: app.delete_resource(resource)),
                class_="resource-actions",
            ),
            class_="resource-header",
        ),
        h("p", resource.description or "No description available", class_="resource-description"),
        h(
            "div",
            h("span", icon("file"), f" {resource.file_name or '-'}"),
            h("span", icon("hdd"), f" {format_file_size(resource.file_size)}"),
            h("span", icon("calendar"), f" {format_date(resource.created_at)}"),
            h("span", icon("user"), f" {ref_name(resource.uploaded_by)}"),
            class_="resource-meta",
        ),
        h(
            "div",
            h("button", icon("download"), " Download", class_="btn btn--primary",
              data_action="download-resource", on_click=lambda e: app.download_resource(resource.id)),
            class_="resource-footer",
        ),
        class_="resource-card", key=resource.id,
    )


def resources(app, user: User, resource_type: str, items: List[Resource], searching: bool = False) -> Element:
    title = plural_title(resource_type)
    if items:
        body = [resource_card(app, user, r) for r in items]
    elif searching:
        body = [empty_state("search", "No Results Found", f"No {title.lower()} match your search criteria.")]
    else:
        body = [empty_state("folder-open", f"No {title} Found",
                            f"There are no {title.lower()} available at the moment.")]
    add = user.is_teacher and h(
        "button", icon("plus"), f" Add {capitalize(resource_type)}", class_="btn btn--primary",
        data_action="create-resource", data_type=resource_type,
        on_click=lambda e: app.show_resource_modal(resource_type),
    )
    return h("div", section_header(title, add), h("div", body, class_="resources-grid"),
             class_="resources", data_type=resource_type)


def resource_modal(app, resource_type: str) -> Element:
    return h(
        "div",
        h(
            "div",
            h("div", h("h2", f"Add {capitalize(resource_type)}", id="resourceModalTitle"),
              h("button", icon("times"), class_="close-modal", data_action="close-modal",
                on_click=lambda e: app.close_modals()),
              class_="modal-header"),
            h(
                "form",
                h("input", type="hidden", name="type", value=resource_type, data_default=resource_type,
                  id="resourceType"),
                field("Title", "title", required=True),
                field("Description", "description", type="textarea"),
                field("File", "file", type="file", required=True),
                submit_button("Upload", "upload"),
                id="resourceForm", on_submit=app.handle_resource_submit,
            ),
            class_="modal-content",
        ),
        class_="modal show", id="resourceModal",
        on_click=lambda e: app.close_modals(),
    )


# ----------------------
# Schedules
# ----------------------
def schedule_card(app, user: User, schedule: Schedule) -> Element:
    footer = schedule.meeting_link and h(
        "div",
        h("a", icon("video"), " Join Meeting", href=schedule.meeting_link, class_="btn btn--primary",
          target="_blank", rel="noopener noreferrer"),
        schedule.password and h("span", icon("key"), f" Password: {schedule.password}",
                                class_="meeting-password"),
        class_="schedule-footer",
    )
    return h(
        "div",
        h("div", h("h3", schedule.title),
          user.is_teacher and delete_button("schedule", "delete-schedule",
                                            lambda e: app.delete_schedule(schedule)),
          class_="schedule-header"),
        h("p", schedule.description or "No description available", class_="schedule-description"),
        h("div",
          h("span", icon("calendar"), f" {format_date(schedule.date)}"),
          h("span", icon("clock"), f" {schedule.time or '-'}"),
          h("span", icon("user"), f" {ref_name(schedule.created_by)}"),
          class_="schedule-meta"),
        footer,
        class_="schedule-card", key=schedule.id,
    )


def schedules(app, user: User, items: List[Schedule]) -> Element:
    form = user.is_teacher and h(
        "div",
        h("h3", "Create New Schedule"),
        h(
            "form",
            h("div",
              field("Title", "title", required=True, placeholder="Class title"),
              field("Date", "date", type="date", required=True),
              field("Time", "time", type="time", required=True),
              field("Meeting Link", "meetingLink", type="url", placeholder="https://meet.google.com/..."),
              class_="form-grid"),
            field("Description", "description", type="textarea", placeholder="Class description"),
            field("Meeting Password", "password", placeholder="Meeting password (optional)"),
            submit_button("Create Schedule"),
            id="scheduleForm", class_="schedule-form", on_submit=app.handle_schedule_submit,
        ),
        class_="schedule-form-section",
    )
    body = [schedule_card(app, user, s) for s in items] or [
        empty_state("calendar", "No Schedules Found", "There are no scheduled classes at the moment.")
    ]
    return h("div", section_header("Class Schedule"), form, h("div", body, class_="schedules-grid"))


# ----------------------
# Students
# ----------------------
def student_card(app, student: Student) -> Element:
    return h(
        "div",
        h(
            "div",
            h("img", src=app.image_url(student.profile_image) or PLACEHOLDER_AVATAR, alt=student.name,
              loading="lazy"),
            h("div", h("h3", student.name), h("p", student.email), class_="student-info"),
            h("button", icon("edit"), class_="btn-icon", title="Edit student", data_action="edit-student",
              on_click=lambda e: app.show_student_modal(student)),
            delete_button("student", "delete-student", lambda e: app.delete_student(student)),
            class_="student-header",
        ),
        h("div",
          h("span", icon("calendar-plus"), f" Joined: {format_date(student.created_at)}"),
          student.phone and h("span", icon("phone"), f" {student.phone}"),
          class_="student-meta"),
        class_="student-card", key=student.id,
    )


def students(app, items: List[Student]) -> Element:
    form = h(
        "div",
        h("h3", "Add New Student"),
        h(
            "form",
            h("div",
              field("Student Name", "name", required=True, placeholder="Full name"),
              field("Email Address", "email", type="email", required=True, placeholder="student@example.com"),
              field("Password", "password", type="password", required=True, placeholder="Temporary password"),
              field("Phone", "phone", type="tel"),
              class_="form-grid"),
            submit_button("Add Student"),
            id="studentForm", class_="schedule-form", on_submit=app.handle_student_submit,
        ),
        class_="student-form-section",
    )
    body = [student_card(app, s) for s in items] or [
        empty_state("users", "No Students Found", "No students have been added yet.")
    ]
    return h("div", section_header("Student Management"), form, h("div", body, class_="students-grid"))


def student_modal(app, student: Student) -> Element:
    return h(
        "div",
        h(
            "div",
            h("div", h("h2", f"Edit {student.name}"),
              h("button", icon("times"), class_="close-modal", data_action="close-modal",
                on_click=lambda e: app.close_modals()),
              class_="modal-header"),
            h(
                "form",
                field("Name", "name", value=student.name, data_default=student.name),
                field("Email", "email", type="email", value=student.email, data_default=student.email),
                field("Phone", "phone", type="tel", value=student.phone or ""),
                field("Date of Birth", "dateOfBirth", type="date", value=student.date_of_birth or ""),
                field("Bio", "bio", type="textarea", value=student.bio or ""),
                submit_button("Save", "save"),
                id="studentProfileForm",
                on_submit=lambda e: app.handle_student_profile_submit(e, student),
            ),
            h(
                "form",
                field("Profile Image", "profileImage", type="file", required=True, accept="image/*"),
                submit_button("Upload Image", "upload"),
                id="studentImageForm",
                on_submit=lambda e: app.handle_student_image_submit(e, student),
            ),
            class_="modal-content",
        ),
        class_="modal show", id="studentModal", on_click=lambda e: app.close_modals(),
    )


# ----------------------
# Fees
# ----------------------
STATUS_BADGES = {"paid": "status--success", "pending": "status--warning", "overdue": "status--danger"}


def fee_row(fee: FeeRecord, show_student: bool = True) -> Element:
    return h(
        "tr",
        show_student and h("td", ref_name(fee.student_id, default=ref_id(fee.student_id) or "-")),
        h("td", f"{fee.month} {fee.year}"),
        h("td", format_amount(fee.amount)),
        h("td", h("span", capitalize(fee.status), class_=f"status {STATUS_BADGES.get(fee.status, '')}")),
        h("td", format_date(fee.payment_date)),
        h("td", fee.notes or ""),
        class_="fee-row", data_status=fee.status, key=fee.id,
    )


def fee_table(fees: List[FeeRecord], show_student: bool = True) -> Element:
    heads = (["Student"] if show_student else []) + ["Period", "Amount", "Status", "Paid On", "Notes"]
    return h(
        "table",
        h("thead", h("tr", [h("th", t) for t in heads])),
        h("tbody", [fee_row(f, show_student) for f in fees]),
        class_="fee-table",
    )


def fees_teacher(app, records: List[FeeRecord], stats: FeeStats, roster: List[Student]) -> Element:
    cards = h(
        "div",
        stat_card(format_amount(stats.total_collected), f"Collected ({stats.paid_count})", "check-circle",
                  "paid-icon"),
        stat_card(format_amount(stats.total_pending), f"Pending ({stats.pending_count})", "clock",
                  "pending-icon"),
        stat_card(format_amount(stats.total_overdue), f"Overdue ({stats.overdue_count})", "exclamation-circle",
                  "overdue-icon"),
        class_="stats-grid",
    )
    today = date.today()
    form = h(
        "div",
        h("h3", "Record Fee"),
        h(
            "form",
            h("div",
              select("Student", "studentId", [("", "Select student")] + [(s.id, s.name) for s in roster],
                     required=True),
              select("Month", "month", [(m, m) for m in MONTHS], value=MONTHS[today.month - 1]),
              field("Year", "year", type="number", required=True, value=str(today.year),
                    data_default=str(today.year)),
              field("Amount", "amount", type="number", required=True, min=0, step="0.01"),
              select("Status", "status", [("pending", "Pending"), ("paid", "Paid"), ("overdue", "Overdue")],
                     value="pending"),
              field("Payment Date", "paymentDate", type="date"),
              class_="form-grid"),
            field("Notes", "notes", type="textarea"),
            submit_button("Save Fee Record"),
            id="feeForm", class_="schedule-form", on_submit=app.handle_fee_submit,
        ),
        class_="fee-form-section",
    )
    body = fee_table(records) if records else empty_state(
        "money-bill", "No Fee Records", "No fee records have been created yet.")
    return h("div", section_header("Fee Management"), cards, form, body, class_="fees")


def fees_student(app, records: List[FeeRecord]) -> Element:
    body = fee_table(records, show_student=False) if records else empty_state(
        "money-bill", "No Fee Records", "You have no fee records yet.")
    return h("div", section_header("My Fees"), fee_alerts(records), body, class_="fees")


# ----------------------
# Results
# ----------------------
def result_row(app, user: User, result: Result) -> Element:
    return h(
        "tr",
        user.is_teacher and h("td", ref_name(result.student_id, default=ref_id(result.student_id) or "-")),
        h("td", result.exam_name),
        h("td", result.subject),
        h("td", result.class_name or "-"),
        h("td", format_date(result.exam_date)),
        h("td", f"{result.marks_obtained:g}/{result.total_marks:g}"),
        h("td", "-" if result.percentage is None else f"{result.percentage:.1f}%"),
        h("td", result.grade or "-"),
        h("td", result.remarks or ""),
        user.is_teacher and h(
            "td",
            h("button", icon("edit"), class_="btn-icon", title="Edit result", data_action="edit-result",
              on_click=lambda e: app.show_result_modal(result)),
            delete_button("result", "delete-result", lambda e: app.delete_result(result)),
        ),
        class_="result-row", key=result.id,
    )


def results_table(app, user: User, items: List[Result]) -> Element:
    heads = (["Student"] if user.is_teacher else []) + [
        "Exam", "Subject", "Class", "Date", "Marks", "Percentage", "Grade", "Remarks"]
    if user.is_teacher:
        heads.append("")
    return h(
        "table",
        h("thead", h("tr", [h("th", t) for t in heads])),
        h("tbody", [result_row(app, user, r) for r in items]),
        class_="results-table",
    )


def leaderboard(app, entries: List[LeaderboardEntry]) -> Element:
    if not entries:
        return empty_state("trophy", "No Rankings Yet", "Rankings appear once results are recorded.")
    return h(
        "ol",
        [
            h("li",
              h("span", f"#{e.rank}", class_="rank"),
              h("img", src=app.image_url(e.profile_image) or PLACEHOLDER_AVATAR, alt=e.name),
              h("span", e.name, class_="name"),
              h("span", f"{e.average_percentage:.1f}% avg", class_="average"),
              h("span", f"{e.total_exams} exams", class_="exams"),
              h("span", f"best {e.highest_score:g}", class_="best"),
              class_="leaderboard-entry", key=e.student_id or str(e.rank))
            for e in entries
        ],
        class_="leaderboard",
    )


def results_teacher(app, user: User, items: List[Result], ranking: List[LeaderboardEntry],
                    roster: List[Student]) -> Element:
    form = h(
        "div",
        h("h3", "Add Result"),
        h(
            "form",
            h("div",
              select("Student", "studentId", [("", "Select student")] + [(s.id, s.name) for s in roster],
                     required=True),
              field("Exam Name", "examName", required=True),
              field("Subject", "subject", required=True),
              field("Class", "class"),
              field("Exam Date", "examDate", type="date"),
              field("Total Marks", "totalMarks", type="number", required=True, min=1),
              field("Marks Obtained", "marksObtained", type="number", required=True, min=0),
              class_="form-grid"),
            field("Remarks", "remarks", type="textarea"),
            submit_button("Save Result"),
            id="resultForm", class_="schedule-form", on_submit=app.handle_result_submit,
        ),
        class_="result-form-section",
    )
    body = results_table(app, user, items) if items else empty_state(
        "clipboard-list", "No Results", "No exam results have been recorded yet.")
    return h(
        "div",
        section_header("Exam Results"),
        form,
        body,
        h("div", h("h2", "Leaderboard"), leaderboard(app, ranking), class_="leaderboard-section"),
        class_="results",
    )


def results_student(app, user: User, items: List[Result]) -> Element:
    body = results_table(app, user, items) if items else empty_state(
        "clipboard-list", "No Results", "You have no exam results yet.")
    return h("div", section_header("My Results"), body, class_="results")


def result_modal(app, result: Result) -> Element:
    return h(
        "div",
        h(
            "div",
            h("div", h("h2", f"Edit {result.exam_name}"),
              h("button", icon("times"), class_="close-modal", data_action="close-modal",
                on_click=lambda e: app.close_modals()),
              class_="modal-header"),
            h(
                "form",
                field("Exam Name", "examName", value=result.exam_name, data_default=result.exam_name),
                field("Subject", "subject", value=result.subject, data_default=result.subject),
                field("Class", "class", value=result.class_name or ""),
                field("Exam Date", "examDate", type="date", value=result.exam_date or ""),
                field("Total Marks", "totalMarks", type="number", value=f"{result.total_marks:g}"),
                field("Marks Obtained", "marksObtained", type="number", value=f"{result.marks_obtained:g}"),
                field("Remarks", "remarks", type="textarea", value=result.remarks or ""),
                submit_button("Save", "save"),
                id="resultEditForm", on_submit=lambda e: app.handle_result_update(e, result),
            ),
            class_="modal-content",
        ),
        class_="modal show", id="resultModal", on_click=lambda e: app.close_modals(),
    )


# ----------------------
# Announcements
# ----------------------
PRIORITY_OPTIONS = [("low", "Low"), ("normal", "Normal"), ("high", "High")]


def announcement_card(app, user: User, item: Announcement, unread: bool = False) -> Element:
    css = f"announcement-card priority--{item.priority}"
    if unread:
        css += " unread"
    return h(
        "div",
        h("div",
          h("h3", item.title),
          h("span", capitalize(item.priority), class_="priority-badge"),
          user.is_teacher and h(
              "div",
              h("button", icon("edit"), class_="btn-icon", title="Edit announcement",
                data_action="edit-announcement", on_click=lambda e: app.show_announcement_modal(item)),
              delete_button("announcement", "delete-announcement", lambda e: app.delete_announcement(item)),
              class_="announcement-actions"),
          class_="announcement-header"),
        h("p", item.content, class_="announcement-content"),
        h("div",
          h("span", icon("user"), f" {ref_name(item.created_by)}"),
          h("span", icon("calendar"), f" {format_date(item.created_at)}"),
          user.is_teacher and h("span", icon("eye"), f" Read by {len(item.read_by)}"),
          class_="announcement-meta"),
        class_=css, key=item.id,
    )


def announcements(app, user: User, items: List[Announcement]) -> Element:
    form = h(
        "div",
        h("h3", "New Announcement"),
        h(
            "form",
            field("Title", "title", required=True),
            field("Content", "content", type="textarea", required=True),
            select("Priority", "priority", PRIORITY_OPTIONS, value="normal"),
            submit_button("Post Announcement", "bullhorn"),
            id="announcementForm", class_="schedule-form", on_submit=app.handle_announcement_submit,
        ),
        class_="announcement-form-section",
    )
    body = [announcement_card(app, user, a) for a in items] or [
        empty_state("bullhorn", "No Announcements", "Nothing has been announced yet.")
    ]
    return h("div", section_header("Announcements"), form, h("div", body, class_="announcements-grid"))


def announcement_modal(app, item: Optional[Announcement] = None) -> Element:
    title = f"Edit {item.title}" if item else "New Announcement"
    return h(
        "div",
        h(
            "div",
            h("div", h("h2", title),
              h("button", icon("times"), class_="close-modal", data_action="close-modal",
                on_click=lambda e: app.close_modals()),
              class_="modal-header"),
            h(
                "form",
                field("Title", "title", required=True, value=item.title if item else ""),
                field("Content", "content", type="textarea", required=True, value=item.content if item else ""),
                select("Priority", "priority", PRIORITY_OPTIONS, value=item.priority if item else "normal"),
                submit_button("Save", "save"),
                id="announcementModalForm",
                on_submit=lambda e: app.handle_announcement_modal_submit(e, item),
            ),
            class_="modal-content",
        ),
        class_="modal show", id="announcementModal", on_click=lambda e: app.close_modals(),
    )


def notices(app, user: User, items: List[Announcement]) -> Element:
    body = [announcement_card(app, user, a, unread=not a.is_read_by(user.id)) for a in items] or [
        empty_state("bell", "No Notices", "There are no notices at the moment.")
    ]
    return h("div", section_header("Notice Board"), h("div", body, class_="announcements-grid"))


# ----------------------
# Profile & settings
# ----------------------
def profile(app, user: User) -> Element:
    return h(
        "div",
        section_header("Profile"),
        h(
            "div",
            h("img", src=app.image_url(user.profile_image) or PLACEHOLDER_AVATAR, alt=user.name,
              class_="profile-avatar"),
            h("div", h("h2", user.name), h("p", user.email), h("p", capitalize(user.role)),
              class_="profile-summary"),
            class_="profile-card",
        ),
        h(
            "form",
            field("Name", "name", value=user.name, data_default=user.name),
            field("Phone", "phone", type="tel", value=user.phone or ""),
            field("Date of Birth", "dateOfBirth", type="date", value=user.date_of_birth or ""),
            field("Bio", "bio", type="textarea", value=user.bio or ""),
            submit_button("Save Profile", "save"),
            id="profileForm", class_="schedule-form", on_submit=app.handle_profile_submit,
        ),
        h(
            "form",
            field("Profile Image", "profileImage", type="file", required=True, accept="image/*"),
            submit_button("Upload Image", "upload"),
            id="profileImageForm", class_="schedule-form", on_submit=app.handle_profile_image_submit,
        ),
        class_="profile",
    )


def settings(app, theme: str) -> Element:
    return h(
        "div",
        section_header("Settings"),
        h(
            "div",
            h("h3", "Appearance"),
            h("p", f"Current theme: {capitalize(theme)}"),
            h("button", icon("sun" if theme == "dark" else "moon"),
              " Switch to light mode" if theme == "dark" else " Switch to dark mode",
              class_="btn btn--secondary", data_action="toggle-theme",
              on_click=lambda e: app.toggle_theme()),
            class_="settings-card",
        ),
        class_="settings",
    )
