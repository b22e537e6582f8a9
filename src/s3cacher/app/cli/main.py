"""CLI main entry point."""

import json
import sys
from collections.abc import Iterable

import click

from ...adapters import (
    Blake2bHashAdapter,
    S3StorageAdapter,
    StdLoggerAdapter,
    UtcClockAdapter,
)
from ...core import (
    CacherError,
    CacheService,
    RestoreRequest,
    SaveRequest,
)
from ...core.cleanup import describe_error
from ...core.config import CacherConfig
from ...core.keys import hash_glob, render_key


def create_service(config: CacherConfig) -> CacheService:
    """Create service with wired adapters."""
    storage = S3StorageAdapter(
        endpoint_url=config.endpoint_url,
        region=config.region,
        profile=config.profile,
        part_size=config.part_size,
    )
    clock = UtcClockAdapter()
    logger = StdLoggerAdapter(level=config.log_level)

    return CacheService(
        storage=storage,
        clock=clock,
        logger=logger,
        cache_control=config.cache_control,
    )


def split_keys(values: Iterable[str]) -> list[str]:
    """Flatten repeated and comma-separated key options, dropping blanks."""
    keys: list[str] = []
    for value in values:
        keys.extend(k.strip() for k in value.split(",") if k.strip())
    return keys


def _fail(err: Exception, allow_failure: bool) -> None:
    click.echo(f"Error: {describe_error(err)}", err=True)
    sys.exit(0 if allow_failure else 1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--endpoint-url", help="Custom S3 endpoint (MinIO, LocalStack, ...)")
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile name")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    endpoint_url: str | None,
    region: str | None,
    profile: str | None,
) -> None:
    """s3-cacher - Save and restore directory caches in S3."""
    try:
        ctx.obj = CacherConfig.from_env(
            log_level="DEBUG" if debug else None,
            endpoint_url=endpoint_url,
            region=region,
            profile=profile,
        )
    except CacherError as e:
        _fail(e, allow_failure=False)


@cli.command()
@click.option("--bucket", required=True, help="Bucket name without s3:// prefix")
@click.option("--dir", "directory", required=True, help="Directory to cache")
@click.option("--key", "key_template", required=True, help="Key with which to cache")
@click.option("--allow-failure", is_flag=True, help="Exit 0 even if saving fails")
@click.pass_obj
def save(
    config: CacherConfig, bucket: str, directory: str, key_template: str, allow_failure: bool
) -> None:
    """Archive a directory and upload it under a key."""
    hasher = Blake2bHashAdapter()
    try:
        key = render_key(key_template, hasher)
    except CacherError as e:
        _fail(e, allow_failure=False)
        return

    try:
        service = create_service(config)
        summary = service.save(SaveRequest(bucket=bucket, directory=directory, key=key))
    except CacherError as e:
        _fail(e, allow_failure)
        return

    output = {
        "operation": "save",
        "bucket": summary.bucket,
        "key": summary.key,
        "files": summary.files,
        "bytes": summary.bytes,
        "duration": round(summary.duration, 3),
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.option("--bucket", required=True, help="Bucket name without s3:// prefix")
@click.option("--dir", "directory", required=True, help="Directory to restore into")
@click.option(
    "--key",
    "key_templates",
    required=True,
    multiple=True,
    help="Keys to search to restore (can use multiple times)",
)
@click.option("--allow-failure", is_flag=True, help="Exit 0 even if restoring fails")
@click.pass_obj
def restore(
    config: CacherConfig,
    bucket: str,
    directory: str,
    key_templates: tuple[str, ...],
    allow_failure: bool,
) -> None:
    """Restore the freshest object among the keys into a directory."""
    hasher = Blake2bHashAdapter()
    try:
        keys = [render_key(t, hasher) for t in split_keys(key_templates)]
    except CacherError as e:
        _fail(e, allow_failure=False)
        return

    try:
        service = create_service(config)
        summary = service.restore(RestoreRequest(bucket=bucket, directory=directory, keys=keys))
    except CacherError as e:
        _fail(e, allow_failure)
        return

    output = {
        "operation": "restore",
        "bucket": summary.bucket,
        "matched_key": summary.matched_key,
        "keys_tried": summary.keys_tried,
        "files": summary.files,
        "bytes": summary.bytes,
        "duration": round(summary.duration, 3),
    }
    click.echo(json.dumps(output, indent=2))


@cli.command("hash")
@click.argument("pattern")
def hash_command(pattern: str) -> None:
    """Print the hash of the files matched by a glob pattern."""
    try:
        click.echo(hash_glob(pattern, Blake2bHashAdapter()))
    except CacherError as e:
        _fail(e, allow_failure=False)


@cli.command("ls")
@click.option("--bucket", required=True, help="Bucket name without s3:// prefix")
@click.option("--prefix", default="", help="Only list keys starting with this prefix")
@click.pass_obj
def list_command(config: CacherConfig, bucket: str, prefix: str) -> None:
    """List cached objects, newest first."""
    try:
        service = create_service(config)
        heads = service.list_entries(bucket, prefix)
    except CacherError as e:
        _fail(e, allow_failure=False)
        return

    output = [
        {
            "key": head.key,
            "last_modified": head.last_modified.isoformat(),
            "size": head.size,
        }
        for head in heads
    ]
    click.echo(json.dumps(output, indent=2))


def main() -> None:
    """Main entry point."""
    cli()
