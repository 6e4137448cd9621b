import logging
import os
from typing import Any, Awaitable, Callable, Optional
from weakref import WeakKeyDictionary

from pydantic import ValidationError

from . import config, views
from .api import ApiService
from .dom import Document, Element, Event
from .errors import ApiError
from .schemas import (
    Announcement,
    AnnouncementCreate,
    AnnouncementUpdate,
    FeeCreate,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResourceCreate,
    Result,
    ResultCreate,
    ResultUpdate,
    ScheduleCreate,
    Student,
    StudentCreate,
    StudentProfileUpdate,
    User,
)
from .sections import RESOURCE_SECTIONS, SECTIONS, sections_for
from .storage import THEME_KEY, LocalStorage
from .timers import Timers

logger = logging.getLogger("eduplatform.app")

MAIN_REGIONS = ("header", "sidebar", "content")


def describe_error(error: Exception) -> str:
    if isinstance(error, ApiError):
        return error.message
    if isinstance(error, ValidationError):
        first = error.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        return f"{where}: {first['msg']}" if where else first["msg"]
    if isinstance(error, OSError):
        if error.filename:
            return f"File error: {error.strerror or error} ({error.filename})"
        return f"File error: {error}"
    return str(error)


def submit_control(form: Element) -> Optional[Element]:
    return form.find(tag="button", type="submit")


class EducationApp:
    """Session and view controller.

    Owns the signed-in user, the active section and the unread poll. All
    network access goes through ``self.api``.
    """

    def __init__(
        self,
        api: ApiService,
        document: Optional[Document] = None,
        storage: Optional[LocalStorage] = None,
        timers: Optional[Timers] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        poll_interval: float = config.UNREAD_POLL_SECONDS,
        search_delay: float = config.SEARCH_DEBOUNCE_SECONDS,
        notification_seconds: float = config.NOTIFICATION_SECONDS,
    ):
        self.api = api
        self.document = document or Document()
        self.storage = storage if storage is not None else api.storage
        self.timers = timers or Timers()
        self.confirm = confirm or (lambda message: True)
        self.poll_interval = poll_interval
        self.search_delay = search_delay
        self.notification_seconds = notification_seconds

        self.current_user: Optional[User] = None
        self.current_section = "dashboard"
        self.theme = "light"
        self.unread_count = 0
        self.sidebar_open = False

        self._generation = 0
        self._session = 0
        self._poll_handle = None
        self._search_handle = None
        self._notification_handle = None
        self._busy: "WeakKeyDictionary[Element, list]" = WeakKeyDictionary()

    # ----------------------
    # Startup / session
    # ----------------------
    async def init(self) -> None:
        logger.info("Initializing Education App")
        self.apply_theme(self.storage.get_item(THEME_KEY) or "light", persist=False)
        if not self.api.token:
            self.show_login()
            return
        try:
            self.current_user = await self.api.get_profile()
        except ApiError as e:
            logger.warning("Auto-login failed: %s", e.message)
            self.api.clear_token()
            self.show_login()
            return
        logger.info("Auto-login successful: %s", self.current_user.name)
        await self.show_main_app()

    async def close(self) -> None:
        self.stop_unread_polling()
        self.timers.clear_all()
        await self.api.aclose()

    @property
    def logged_in(self) -> bool:
        return self.current_user is not None

    def show_login(self, mode: str = "login", error: Optional[str] = None) -> None:
        logger.debug("Showing %s screen", mode)
        for region in MAIN_REGIONS:
            self.document.hide(region)
        self.document.mount("login", views.login_screen(self, mode, error))
        self.document.show("login")

    async def show_main_app(self) -> None:
        logger.info("Showing main application for %s (%s)", self.current_user.name, self.current_user.role)
        session = self._session
        self.document.hide("login")
        self.document.clear("login")
        for region in MAIN_REGIONS:
            self.document.show(region)
        self.current_section = "dashboard"
        self.document.title = SECTIONS["dashboard"].title
        self.render_chrome()
        if not self.current_user.is_teacher:
            await self.start_unread_polling()
            if session != self._session:
                return
        await self.load_section("dashboard")

    async def handle_login(self, event: Event) -> None:
        form = event.target
        button = submit_control(form)
        error = form.find(id="loginError")
        self._set_form_error(error, None)
        self.set_loading(button, True)
        try:
            credentials = LoginRequest.model_validate(form.form_values())
            logger.info("Attempting login for %s", credentials.email)
            response = await self.api.login(credentials.email, credentials.password)
        except (ApiError, ValidationError) as e:
            logger.error("Login failed: %s", describe_error(e))
            self._set_form_error(error, describe_error(e))
            return
        finally:
            self.set_loading(button, False)
        self.api.set_token(response.token)
        self.current_user = response.user
        logger.info("Login successful: %s", self.current_user.name)
        await self.show_main_app()

    async def handle_register(self, event: Event) -> None:
        form = event.target
        button = submit_control(form)
        error = form.find(id="registerError")
        self._set_form_error(error, None)
        self.set_loading(button, True)
        try:
            response = await self.api.register(RegisterRequest.model_validate(form.form_values()))
        except (ApiError, ValidationError) as e:
            logger.error("Registration failed: %s", describe_error(e))
            self._set_form_error(error, describe_error(e))
            return
        finally:
            self.set_loading(button, False)
        if response.token and response.user:
            self.api.set_token(response.token)
            self.current_user = response.user
            await self.show_main_app()
            return
        self.show_login()
        self.show_notification("Registration successful! Please sign in.", "success")

    def handle_logout(self) -> None:
        if not self.confirm("Are you sure you want to logout?"):
            return
        logger.info("User logging out")
        self.api.clear_token()
        self.current_user = None
        self._generation += 1
        self._session += 1
        self.stop_unread_polling()
        self.timers.clear(self._search_handle)
        self._search_handle = None
        self.unread_count = 0
        self.close_modals()
        for region in MAIN_REGIONS:
            self.document.clear(region)
        self.show_login()

    def update_user(self, user: User) -> None:
        self.current_user = user
        if self.logged_in:
            self.render_header()

    # ----------------------
    # Chrome
    # ----------------------
    def render_chrome(self) -> None:
        self.render_header()
        self.render_sidebar()

    def render_header(self) -> None:
        self.document.mount("header", views.header(self, self.current_user, self.theme))

    def render_sidebar(self) -> None:
        if not self.logged_in:
            return
        self.document.mount(
            "sidebar",
            views.sidebar(self, sections_for(self.current_user.role), self.current_section,
                          self.unread_count, self.sidebar_open),
        )

    def toggle_mobile_sidebar(self) -> None:
        self.sidebar_open = not self.sidebar_open
        self.render_sidebar()

    def apply_theme(self, theme: str, persist: bool = True) -> None:
        self.theme = "dark" if theme == "dark" else "light"
        self.document.attributes["data-theme"] = self.theme
        if persist:
            self.storage.set_item(THEME_KEY, self.theme)
        if self.logged_in:
            self.render_header()
            if self.current_section == "settings":
                self.document.mount("content", views.settings(self, self.theme))

    def toggle_theme(self) -> None:
        self.apply_theme("light" if self.theme == "dark" else "dark")
        logger.info("Theme changed to %s", self.theme)

    def image_url(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        if path.startswith(("http://", "https://", "data:")):
            return path
        origin = self.api.base_url[:-len("/api")] if self.api.base_url.endswith("/api") else self.api.base_url
        return f"{origin}/{path.lstrip('/')}"

    # ----------------------
    # Sections
    # ----------------------
    async def navigate(self, section: str) -> None:
        self.timers.clear(self._search_handle)
        self._search_handle = None
        self.current_section = section
        known = SECTIONS.get(section)
        self.document.title = known.title if known else views.capitalize(section)
        self.sidebar_open = False
        self.render_chrome()
        await self.load_section(section)

    def _begin_load(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int, section: str) -> bool:
        return self.logged_in and generation == self._generation and section == self.current_section

    async def load_section(self, name: str) -> None:
        if not self.logged_in:
            return
        logger.info("Loading section %s", name)
        section = SECTIONS.get(name)
        if section is None:
            self.document.mount("content", views.section_not_found())
            return
        if not section.allows(self.current_user.role):
            self.document.mount("content", views.access_restricted())
            return
        generation = self._begin_load()
        self.document.mount("content", views.loading_state())
        try:
            data = await section.load(self)
        except ApiError as e:
            logger.error("Error loading %s: %s", name, e.message)
            if self._is_current(generation, name):
                self.document.mount(
                    "content",
                    views.error_state(f"Failed to load {section.title.lower()}", e.message,
                                      on_reload=lambda ev: self.load_section(name)),
                )
            return
        if not self._is_current(generation, name):
            logger.debug("Discarding stale response for %s", name)
            return
        self.document.mount("content", section.render(self, data))
        if section.after is not None:
            await section.after(self, data)

    async def reload_current_section(self) -> None:
        await self.load_section(self.current_section)

    # ----------------------
    # Search
    # ----------------------
    def handle_search_input(self, value: str) -> None:
        self.timers.clear(self._search_handle)
        self._search_handle = self.timers.set_timeout(lambda: self.search_resources(value), self.search_delay)

    async def search_resources(self, term: str) -> None:
        section = self.current_section
        resource_type = RESOURCE_SECTIONS.get(section)
        if resource_type is None or not self.logged_in:
            return
        term = term.strip()
        logger.info("Searching %s for %r", section, term)
        if not term:
            await self.load_section(section)
            return
        generation = self._begin_load()
        try:
            items = await self.api.get_resources(resource_type, term)
        except ApiError as e:
            logger.error("Search error: %s", e.message)
            self.show_notification("Search failed", "error")
            return
        if not self._is_current(generation, section):
            return
        self.document.mount("content", views.resources(self, self.current_user, resource_type, items,
                                                       searching=True))

    # ----------------------
    # Mutations
    # ----------------------
    async def _mutate(
        self,
        control: Optional[Element],
        call: Callable[[], Awaitable[Any]],
        success: str,
        form: Optional[Element] = None,
    ) -> bool:
        self.set_loading(control, True)
        try:
            await call()
        except (ApiError, ValidationError, OSError) as e:
            logger.error("Action failed (%s): %s", success, describe_error(e))
            self.show_notification(describe_error(e), "error")
            return False
        finally:
            self.set_loading(control, False)
        self.show_notification(success, "success")
        self.close_modals()
        if form is not None:
            form.reset()
        await self.reload_current_section()
        return True

    async def _delete(self, label: str, call: Callable[[], Awaitable[Any]]) -> bool:
        if not self.confirm(f"Are you sure you want to delete this {label}?"):
            return False
        return await self._mutate(None, call, f"{views.capitalize(label)} deleted successfully!")

    def show_resource_modal(self, resource_type: str) -> None:
        self.document.mount("modal", views.resource_modal(self, resource_type))
        self.document.show("modal")

    async def handle_resource_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values()
        path = values.pop("file", None)
        if not path:
            self.show_notification("Please choose a file to upload", "error")
            return False

        async def create():
            await self.api.create_resource(ResourceCreate.model_validate(values), path)

        return await self._mutate(submit_control(form), create, "Resource added successfully!", form)

    async def delete_resource(self, resource) -> bool:
        return await self._delete("resource", lambda: self.api.delete_resource(resource.id))

    async def download_resource(self, resource_id: str) -> Optional[str]:
        try:
            self.api.require_token()
            resource = await self.api.get_resource(resource_id)
            path = await self.api.download_resource(resource_id, resource.file_name)
        except (ApiError, OSError) as e:
            logger.error("Download failed: %s", describe_error(e))
            self.show_notification(describe_error(e), "error")
            return None
        self.show_notification(f"Downloaded {os.path.basename(path)}", "success")
        return path

    async def handle_schedule_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values()

        async def create():
            await self.api.create_schedule(ScheduleCreate.model_validate(values))

        return await self._mutate(submit_control(form), create, "Schedule created successfully!", form)

    async def delete_schedule(self, schedule) -> bool:
        return await self._delete("schedule", lambda: self.api.delete_schedule(schedule.id))

    async def handle_student_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values()

        async def create():
            await self.api.create_student(StudentCreate.model_validate(values))

        return await self._mutate(submit_control(form), create, "Student added successfully!", form)

    async def delete_student(self, student: Student) -> bool:
        return await self._delete("student", lambda: self.api.delete_student(student.id))

    def show_student_modal(self, student: Student) -> None:
        self.document.mount("modal", views.student_modal(self, student))
        self.document.show("modal")

    async def handle_student_profile_submit(self, event: Event, student: Student) -> bool:
        form = event.target
        values = form.form_values(skip_empty=False)

        async def save():
            await self.api.update_student_profile(student.id, StudentProfileUpdate.model_validate(values))

        return await self._mutate(submit_control(form), save, "Student profile updated!")

    async def handle_student_image_submit(self, event: Event, student: Student) -> bool:
        form = event.target
        path = form.form_values().get("profileImage")
        if not path:
            self.show_notification("Please choose an image to upload", "error")
            return False
        return await self._mutate(
            submit_control(form), lambda: self.api.upload_student_image(student.id, path),
            "Profile image updated!",
        )

    async def handle_fee_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values()

        async def create():
            await self.api.create_fee(FeeCreate.model_validate(values))

        return await self._mutate(submit_control(form), create, "Fee record saved!", form)

    async def handle_result_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values()

        async def create():
            await self.api.create_result(ResultCreate.model_validate(values))

        return await self._mutate(submit_control(form), create, "Result added successfully!", form)

    def show_result_modal(self, result: Result) -> None:
        self.document.mount("modal", views.result_modal(self, result))
        self.document.show("modal")

    async def handle_result_update(self, event: Event, result: Result) -> bool:
        form = event.target
        values = form.form_values(skip_empty=False)

        async def save():
            await self.api.update_result(result.id, ResultUpdate.model_validate(values))

        return await self._mutate(submit_control(form), save, "Result updated successfully!")

    async def delete_result(self, result: Result) -> bool:
        return await self._delete("result", lambda: self.api.delete_result(result.id))

    def show_announcement_modal(self, item: Optional[Announcement] = None) -> None:
        self.document.mount("modal", views.announcement_modal(self, item))
        self.document.show("modal")

    async def handle_announcement_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values()

        async def create():
            await self.api.create_announcement(AnnouncementCreate.model_validate(values))

        return await self._mutate(submit_control(form), create, "Announcement posted!", form)

    async def handle_announcement_modal_submit(self, event: Event, item: Optional[Announcement]) -> bool:
        if item is None:
            return await self.handle_announcement_submit(event)
        form = event.target
        values = form.form_values(skip_empty=False)

        async def save():
            await self.api.update_announcement(item.id, AnnouncementUpdate.model_validate(values))

        return await self._mutate(submit_control(form), save, "Announcement updated!")

    async def delete_announcement(self, item: Announcement) -> bool:
        return await self._delete("announcement", lambda: self.api.delete_announcement(item.id))

    async def handle_profile_submit(self, event: Event) -> bool:
        form = event.target
        values = form.form_values(skip_empty=False)

        async def save():
            self.update_user(await self.api.update_profile(ProfileUpdate.model_validate(values)))

        return await self._mutate(submit_control(form), save, "Profile updated successfully!")

    async def handle_profile_image_submit(self, event: Event) -> bool:
        form = event.target
        path = form.form_values().get("profileImage")
        if not path:
            self.show_notification("Please choose an image to upload", "error")
            return False

        async def upload():
            self.update_user((await self.api.upload_profile_image(path)).user)

        return await self._mutate(submit_control(form), upload, "Profile image updated!")

    # ----------------------
    # Announcements read state
    # ----------------------
    async def start_unread_polling(self) -> None:
        session = self._session
        self.stop_unread_polling()
        await self.refresh_unread_count()
        if not self.logged_in or session != self._session:
            return
        self._poll_handle = self.timers.set_interval(self.refresh_unread_count, self.poll_interval)

    def stop_unread_polling(self) -> None:
        if self._poll_handle is not None:
            self.timers.clear(self._poll_handle)
            self._poll_handle = None

    async def refresh_unread_count(self) -> None:
        if not self.logged_in or self.current_user.is_teacher:
            return
        session = self._session
        try:
            count = await self.api.get_unread_count()
        except ApiError as e:
            logger.warning("Unread count refresh failed: %s", e.message)
            return
        if not self.logged_in or session != self._session:
            return
        self.unread_count = count
        self.render_sidebar()

    async def mark_notices_read(self, items) -> None:
        user_id = self.current_user.id
        for item in items:
            if not item.id or item.is_read_by(user_id):
                continue
            try:
                await self.api.mark_announcement_read(item.id)
            except ApiError as e:
                logger.warning("Could not mark announcement %s read: %s", item.id, e.message)
            if not self.logged_in:
                return
        await self.refresh_unread_count()

    # ----------------------
    # Feedback
    # ----------------------
    def set_loading(self, element: Optional[Element], loading: bool) -> None:
        if element is None:
            return
        if loading:
            if element not in self._busy:
                self._busy[element] = element.children
            element.children = [views.icon("spinner fa-spin"), " Loading..."]
            element.attrs["disabled"] = True
        else:
            element.children = self._busy.pop(element, element.children)
            element.attrs["disabled"] = False

    def _set_form_error(self, node: Optional[Element], message: Optional[str]) -> None:
        if node is None:
            return
        node.children = [message] if message else []
        node.attrs["hidden"] = message is None

    def show_notification(self, message: str, type: str = "info") -> Element:
        self.timers.clear(self._notification_handle)
        node = views.notification(message, type, on_close=lambda e: self.dismiss_notification())
        self.document.mount("notifications", node)
        self._notification_handle = self.timers.set_timeout(
            lambda: self._expire_notification(node), self.notification_seconds
        )
        return node

    def dismiss_notification(self) -> None:
        self.timers.clear(self._notification_handle)
        self._notification_handle = None
        self.document.clear("notifications")

    def _expire_notification(self, node: Element) -> None:
        if self.document.get("notifications") is node:
            self.document.clear("notifications")

    def close_modals(self) -> None:
        self.document.clear("modal")
        self.document.hide("modal")

    def handle_keydown(self, key: str) -> None:
        if key == "Escape":
            self.close_modals()
