from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from pressdock.cli.formatter import OutputFormatter
from pressdock.core.context import SessionContext
from pressdock.core.models import StackConfig
from pressdock.runtime.commands import CommandRunner
from pressdock.runtime.compose import DB_HOST, DB_NAME, DB_PASSWORD, DB_USER

BUILD_PATH = "/var/www/build"
DEBUG_CONSTANTS = ("WP_DEBUG", "SCRIPT_DEBUG", "WP_DEBUG_DISPLAY")
SITE_TITLE = "WordPress Develop"
ADMIN_USER = "admin"
ADMIN_PASSWORD = "password"
ADMIN_EMAIL = "test@test.test"


class WordPressInstaller:
    """
    Brings the WordPress install inside the stack up to date.

    Every decision is made by asking the running stack (does wp-config.php exist,
    are the core tables there), so running it again after an interruption or on an
    already installed site is safe.
    """

    def __init__(
        self,
        context: SessionContext,
        runner: CommandRunner,
        wait_for_database: Callable[[], bool],
    ) -> None:
        self.context = context
        self.runner = runner
        self.wait_for_database = wait_for_database

    def install(self, config: Optional[StackConfig] = None) -> bool:
        """Returns False if the database wait was abandoned before it became healthy."""
        config = config or self.context.applied

        OutputFormatter.log("Waiting for mysqld to start in the MySQL container", severity="debug")
        if not self.wait_for_database():
            return False

        self.ensure_config(config)
        self.ensure_installed(config)

        OutputFormatter.log(f"WordPress ready at {config.site_url}/", severity="debug")
        return True

    def ensure_config(self, config: StackConfig) -> bool:
        """Create wp-config.php when WP-CLI can't find one. Returns whether one was created."""
        OutputFormatter.log("Checking if a config file exists", severity="debug")
        if self.runner.run_cli("config", "path").success:
            return False

        OutputFormatter.log("Creating wp-config.php file", severity="debug")
        self.runner.run_cli(
            "config",
            "create",
            f"--dbname={DB_NAME}",
            f"--dbuser={DB_USER}",
            f"--dbpass={DB_PASSWORD}",
            f"--dbhost={DB_HOST}",
            f"--path={BUILD_PATH}",
        )

        self._move_config_out_of_build(config)

        OutputFormatter.log("Adding debug options to wp-config.php", severity="debug")
        for constant in DEBUG_CONSTANTS:
            self.runner.run_cli("config", "set", constant, "true", "--raw", "--type=constant")

        return True

    def ensure_installed(self, config: StackConfig) -> bool:
        """Install WordPress, or point an existing install at the current port. Returns whether it installed."""
        OutputFormatter.log("Checking if WordPress is installed", severity="debug")
        if self.runner.run_cli("core", "is-installed").success:
            OutputFormatter.log("Updating site URL", severity="debug")
            self.runner.run_cli("option", "update", "home", config.site_url)
            self.runner.run_cli("option", "update", "siteurl", config.site_url)
            return False

        OutputFormatter.log("Installing WordPress", severity="debug")
        self.runner.run_cli(
            "core",
            "install",
            f"--url=localhost:{config.port}",
            f"--title={SITE_TITLE}",
            f"--admin_user={ADMIN_USER}",
            f"--admin_password={ADMIN_PASSWORD}",
            f"--admin_email={ADMIN_EMAIL}",
            "--skip-email",
        )
        return True

    @staticmethod
    def _move_config_out_of_build(config: StackConfig) -> None:
        if not config.wordpress_folder:
            return

        wordpress = Path(config.wordpress_folder).expanduser()
        built_config = wordpress / "build" / "wp-config.php"
        if built_config.exists():
            OutputFormatter.log("Moving wp-config.php out of the build directory", severity="debug")
            built_config.replace(wordpress / "wp-config.php")
