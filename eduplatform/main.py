import logging
from typing import Callable, Optional

import httpx

from . import config
from .api import ApiService
from .app import EducationApp
from .dom import Document
from .storage import DownloadFolder, LocalStorage

logger = logging.getLogger("eduplatform")


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def create_app(
    hostname: Optional[str] = None,
    storage_path: Optional[str] = config.STORAGE_PATH,
    download_dir: str = config.DOWNLOAD_DIR,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    confirm: Optional[Callable[[str], bool]] = None,
) -> EducationApp:
    storage = LocalStorage(storage_path)
    api = ApiService(
        base_url=config.select_base_url(hostname),
        storage=storage,
        downloads=DownloadFolder(download_dir),
        transport=transport,
    )
    return EducationApp(api, Document(), storage=storage, confirm=confirm)


async def start(**kwargs) -> EducationApp:
    """Page-load equivalent: build the app and run its startup sequence."""
    logger.info("Educational Platform starting...")
    app = create_app(**kwargs)
    await app.init()
    return app
