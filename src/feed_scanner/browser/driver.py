"""
Browser management for the feed scanner
"""
import logging
from typing import Optional

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from feed_scanner.core.config_models import BrowserSettings

logger = logging.getLogger(__name__)


class BrowserManager:
    def __init__(self, settings: Optional[BrowserSettings] = None):
        self.settings = settings or BrowserSettings()
        self.driver = None

    def build_options(self) -> Options:
        """Chrome options for a visible, media-capable session"""
        options = Options()
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--autoplay-policy=no-user-gesture-required")
        options.add_argument("--mute-audio")
        if self.settings.chrome_binary:
            options.binary_location = self.settings.chrome_binary
        if self.settings.profile_dir:
            options.add_argument(f"--user-data-dir={self.settings.profile_dir}")
        if self.settings.headless:
            options.add_argument("--headless=new")
            options.add_argument("--window-size=1280,900")
            logger.info("Creating headless browser")
        else:
            options.add_argument("--start-maximized")
        return options

    def create_driver(self):
        """Create Chrome driver"""
        options = self.build_options()
        if self.settings.chromedriver_path:
            service = Service(self.settings.chromedriver_path)
        else:
            from webdriver_manager.chrome import ChromeDriverManager

            service = Service(ChromeDriverManager().install())
        self.driver = webdriver.Chrome(service=service, options=options)
        logger.info("Chrome browser created")
        return self.driver

    def open(self, url: str) -> bool:
        """Navigate and wait for the document body"""
        if self.driver is None:
            self.create_driver()
        self.driver.get(url)
        try:
            WebDriverWait(self.driver, self.settings.wait_time).until(
                EC.presence_of_element_located((By.TAG_NAME, "body"))
            )
            return True
        except TimeoutException:
            logger.warning(f"Page body not ready after {self.settings.wait_time}s: {url}")
            return False

    def close(self) -> None:
        if self.driver is None:
            return
        try:
            self.driver.quit()
        except WebDriverException as e:
            logger.debug(f"Driver quit failed: {e}")
        self.driver = None
