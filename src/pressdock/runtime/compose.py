from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import yaml

from pressdock.core.context import SessionContext
from pressdock.core.models import (
    ComposeDescriptor,
    ComposeService,
    HealthCheck,
    StackConfig,
    normalize_host_path,
)

ASSETS_DIR = Path(__file__).resolve().parent / "assets"
STATIC_FRAGMENTS: Tuple[str, ...] = ("default.conf", "php-config.ini", "phpunit-config.ini")

WEB_SERVICE = "wordpress-develop"
PHP_SERVICE = "php"
MYSQL_SERVICE = "mysql"
CLI_SERVICE = "cli"
PHPUNIT_SERVICE = "phpunit"
GUTENBERG_PHPUNIT_SERVICE = "phpunit-gutenberg"

DB_NAME = "wordpress_develop"
DB_USER = "root"
DB_PASSWORD = "password"
DB_HOST = "mysql"

PHPUNIT_IMAGE = "garypendergast/wordpress-develop-phpunit"
GUTENBERG_MOUNT_TARGET = "/var/www/src/wp-content/plugins/gutenberg"


@dataclass(frozen=True)
class WrittenDescriptors:
    """Files produced by one descriptor write."""

    compose_file: Path
    scripts_file: Path
    fragments: List[Path]


def build_descriptors(config: StackConfig) -> Tuple[ComposeDescriptor, ComposeDescriptor]:
    """Map a configuration snapshot to the (persistent, scripts) compose documents."""
    wordpress = normalize_host_path(config.wordpress_folder or "")
    www_volume = f"{wordpress}:/var/www"

    persistent = ComposeDescriptor(
        services={
            WEB_SERVICE: ComposeService(
                image="nginx:alpine",
                ports=[f"{config.port}:80"],
                volumes=["./default.conf:/etc/nginx/conf.d/default.conf", www_volume],
                links=[PHP_SERVICE],
            ),
            PHP_SERVICE: ComposeService(
                image="garypendergast/wordpress-develop-php",
                volumes=["./php-config.ini:/usr/local/etc/php/conf.d/php-config.ini", www_volume],
                links=[MYSQL_SERVICE],
            ),
            MYSQL_SERVICE: ComposeService(
                image="mysql:5.7",
                environment={
                    "MYSQL_ROOT_PASSWORD": DB_PASSWORD,
                    "MYSQL_DATABASE": DB_NAME,
                },
                healthcheck=HealthCheck(
                    test=[
                        "CMD", "mysql",
                        "-e", f"SHOW TABLES FROM {DB_NAME}",
                        f"-u{DB_USER}", f"-p{DB_PASSWORD}", f"-h{DB_HOST}",
                        "--protocol=tcp",
                    ],
                    interval="1s",
                    retries=100,
                ),
                volumes=["mysql:/var/lib/mysql"],
            ),
        },
        volumes={"mysql": {}},
    )

    scripts = ComposeDescriptor(
        services={
            CLI_SERVICE: ComposeService(
                image="wordpress:cli",
                volumes=[www_volume],
            ),
            PHPUNIT_SERVICE: ComposeService(
                image=PHPUNIT_IMAGE,
                volumes=[
                    "./phpunit-config.ini:/usr/local/etc/php/conf.d/phpunit-config.ini",
                    f"{wordpress}:/wordpress-develop",
                    "phpunit-uploads:/wordpress-develop/src/wp-content/uploads",
                ],
                init=True,
            ),
        },
        volumes={"phpunit-uploads": {}},
    )

    if config.gutenberg_folder:
        gutenberg = normalize_host_path(config.gutenberg_folder)
        gutenberg_volume = f"{gutenberg}:{GUTENBERG_MOUNT_TARGET}"

        for name in (WEB_SERVICE, PHP_SERVICE):
            persistent.services[name].volumes.append(gutenberg_volume)
        scripts.services[CLI_SERVICE].volumes.append(gutenberg_volume)

        scripts.services[GUTENBERG_PHPUNIT_SERVICE] = ComposeService(
            image=PHPUNIT_IMAGE,
            volumes=[
                f"{wordpress}:/wordpress-develop",
                f"{gutenberg}:/wordpress-develop/src/wp-content/plugins/gutenberg",
            ],
        )

    return persistent, scripts


def dump_descriptor(descriptor: ComposeDescriptor) -> str:
    """Serialize as block-style YAML without line wrapping, keeping service order."""
    return yaml.safe_dump(
        descriptor.to_document(),
        default_flow_style=False,
        sort_keys=False,
        width=float("inf"),
    )


def write_descriptors(context: SessionContext, config: StackConfig) -> WrittenDescriptors:
    """Regenerate both compose files and copy the static fragments into the tools directory."""
    tools_dir = context.tools_dir
    tools_dir.mkdir(parents=True, exist_ok=True)

    persistent, scripts = build_descriptors(config)
    context.compose_file.write_text(dump_descriptor(persistent), encoding="utf-8")
    context.scripts_compose_file.write_text(dump_descriptor(scripts), encoding="utf-8")

    fragments: List[Path] = []
    for name in STATIC_FRAGMENTS:
        target = tools_dir / name
        shutil.copyfile(ASSETS_DIR / name, target)
        fragments.append(target)

    return WrittenDescriptors(
        compose_file=context.compose_file,
        scripts_file=context.scripts_compose_file,
        fragments=fragments,
    )
