# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for pyairwatch.

This module provides the main CLI entry point for the awr tool, offering
commands for uploading and installing internal applications and for querying
managed devices.

Commands:

    upload: Upload an application package in chunks (optionally install it)
    blob: Upload an application package as a single blob
    install: Install a previously uploaded package
    device: Query a device's details, apps, profiles, ...
    bump-version: Compute the next version of a published app

Example:
    Upload a package:
        ```bash
        $ awr upload MyApp.ipa --config airwatch.yaml
        ```

    Upload and install in one go:
        ```bash
        $ awr upload MyApp.ipa --install --name "My App"
        ```

    List apps installed on a device:
        ```bash
        $ awr device UDID 0a1b2c3d4e --action apps
        ```

    Enable debug output:
        ```bash
        $ awr upload MyApp.ipa --debug
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, upload, network or protocol failure)

Note:
    Credentials come from --config and AIRWATCH_* environment variables
    (a .env file in the working directory is honoured).
    Verbose mode shows full tracebacks on errors for debugging.

"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
import json
from pathlib import Path
import sys
from typing import Any

from pyairwatch.apps import InstallOptions
from pyairwatch.client import AirWatchClient
from pyairwatch.devices import DEVICE_ACTIONS
from pyairwatch.exceptions import AirWatchError
from pyairwatch.io.upload import UploadEvent
from pyairwatch.logging import get_logger, set_global_logger
from pyairwatch.validation import DEVICE_ID_TYPES


def _package_version() -> str:
    try:
        return version("pyairwatch")
    except PackageNotFoundError:
        from pyairwatch import __version__

        return __version__


def _configure(args: argparse.Namespace) -> AirWatchClient:
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)
    config_path = Path(args.config) if args.config else None
    return AirWatchClient.from_config_file(config_path, logger=logger)


def _report_error(args: argparse.Namespace, err: Exception) -> int:
    print(f"Error: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _progress_printer(event: UploadEvent) -> None:
    if event.kind == "chunk_acknowledged" and event.total_size:
        pct = int(event.bytes_uploaded * 100 / event.total_size)
        print(f"upload progress: {pct}%", end="\r")
    elif event.kind in ("completed", "failed") and event.bytes_uploaded:
        # Move past the progress line.
        print()


def cmd_upload(args: argparse.Namespace) -> int:
    """Handler for 'awr upload' command.

    Uploads a package chunk by chunk and prints the transaction id. With
    --install, the uploaded package is installed right away.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    file_path = Path(args.file).resolve()
    if args.install and not args.name:
        print("Error: --install requires --name")
        return 1

    print(f"Uploading: {file_path}")
    print()

    try:
        with _configure(args) as client:
            steps = 2 if args.install else 1
            client.logger.step(1, steps, "Uploading chunks...")
            result = client.upload_app_chunks(
                file_path,
                chunk_size=args.chunk_size,
                on_event=_progress_printer,
            )
            install_body = None
            if args.install:
                client.logger.step(2, steps, "Starting install...")
                install_body = client.install_app(
                    InstallOptions(
                        transaction_id=result.transaction_id,
                        application_name=args.name,
                        device_type=args.device_type,
                        push_mode=args.push_mode,
                        auto_update_version=args.auto_update,
                    )
                )
    except AirWatchError as err:
        return _report_error(args, err)

    print("=" * 70)
    print("UPLOAD RESULTS")
    print("=" * 70)
    print(f"File:            {result.file_path}")
    print(f"Size:            {result.total_size} bytes")
    print(f"Chunks:          {result.chunk_count}")
    print(f"Transaction ID:  {result.transaction_id}")
    print(f"Status:          {result.status}")
    print("=" * 70)
    if install_body is not None:
        print()
        print("INSTALL RESPONSE")
        _print_json(install_body)
    print()
    print("[SUCCESS] Package uploaded successfully!")
    return 0


def cmd_blob(args: argparse.Namespace) -> int:
    """Handler for 'awr blob' command."""
    file_path = Path(args.file).resolve()
    print(f"Uploading blob: {file_path}")
    print()

    try:
        with _configure(args) as client:
            result = client.upload_app_blob(file_path)
    except AirWatchError as err:
        return _report_error(args, err)

    _print_json(result.body)
    print()
    print("[SUCCESS] Blob uploaded successfully!")
    return 0


def cmd_install(args: argparse.Namespace) -> int:
    """Handler for 'awr install' command."""
    options = InstallOptions(
        transaction_id=args.transaction_id,
        application_name=args.name,
        device_type=args.device_type,
        push_mode=args.push_mode,
        auto_update_version=args.auto_update,
    )

    try:
        with _configure(args) as client:
            body = client.install_app(options)
    except AirWatchError as err:
        return _report_error(args, err)

    _print_json(body)
    print()
    print("[SUCCESS] Install started!")
    return 0


def cmd_device(args: argparse.Namespace) -> int:
    """Handler for 'awr device' command."""
    try:
        with _configure(args) as client:
            body = client.get_device(args.id_type, args.uid, args.action)
    except AirWatchError as err:
        return _report_error(args, err)

    _print_json(body)
    return 0


def cmd_bump_version(args: argparse.Namespace) -> int:
    """Handler for 'awr bump-version' command.

    Looks up the published version of an app and prints the version the
    next release should carry.
    """
    try:
        with _configure(args) as client:
            result = client.update_version(
                args.bundle_id, status=args.status, release=args.release
            )
    except AirWatchError as err:
        return _report_error(args, err)

    print("=" * 70)
    print("VERSION BUMP")
    print("=" * 70)
    print(f"Bundle ID:        {result.bundle_id}")
    print(f"Release:          {result.release}")
    print(f"Current Version:  {result.current_version}")
    print(f"New Version:      {result.new_version}")
    print("=" * 70)
    return 0


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration file (default: environment only)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _add_install_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--device-type",
        default="2",
        help="AirWatch device type code (default: 2, Apple iOS)",
    )
    parser.add_argument(
        "--push-mode",
        default="OnDemand",
        choices=["OnDemand", "Auto"],
        help="Push mode for the install (default: OnDemand)",
    )
    parser.add_argument(
        "--auto-update",
        action="store_true",
        help="Automatically update devices to this version",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awr",
        description="awr - AirWatch application upload and device queries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"awr {_package_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'upload' command
    parser_upload = subparsers.add_parser(
        "upload",
        help="Upload an application package in chunks",
        description="Upload an .ipa/.apk in chunks and print the transaction id.",
    )
    parser_upload.add_argument("file", help="Path to the application package")
    parser_upload.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Bytes per chunk (default: from config, 35840)",
    )
    parser_upload.add_argument(
        "--install",
        action="store_true",
        help="Install the package once the upload completes",
    )
    parser_upload.add_argument(
        "--name",
        default=None,
        help="Application name for --install",
    )
    _add_install_flags(parser_upload)
    _add_common_flags(parser_upload)
    parser_upload.set_defaults(func=cmd_upload)

    # 'blob' command
    parser_blob = subparsers.add_parser(
        "blob",
        help="Upload an application package as a single blob",
        description="Stream a package to the blob endpoint in one request.",
    )
    parser_blob.add_argument("file", help="Path to the application package")
    _add_common_flags(parser_blob)
    parser_blob.set_defaults(func=cmd_blob)

    # 'install' command
    parser_install = subparsers.add_parser(
        "install",
        help="Install a previously uploaded package",
        description="Start the install of an internal app from an upload transaction id.",
    )
    parser_install.add_argument("transaction_id", help="Transaction id of the upload")
    parser_install.add_argument("--name", required=True, help="Application name")
    _add_install_flags(parser_install)
    _add_common_flags(parser_install)
    parser_install.set_defaults(func=cmd_install)

    # 'device' command
    parser_device = subparsers.add_parser(
        "device",
        help="Query a managed device",
        description="Show details of a device, or one of its collections.",
    )
    parser_device.add_argument(
        "id_type", choices=DEVICE_ID_TYPES, help="Identifier type"
    )
    parser_device.add_argument("uid", help="Identifier value")
    parser_device.add_argument(
        "--action",
        choices=DEVICE_ACTIONS,
        default=None,
        help="Collection to query (default: device details)",
    )
    _add_common_flags(parser_device)
    parser_device.set_defaults(func=cmd_device)

    # 'bump-version' command
    parser_bump = subparsers.add_parser(
        "bump-version",
        help="Compute the next version of a published app",
        description="Look up an app's published version and apply a semantic bump.",
    )
    parser_bump.add_argument("bundle_id", help="Bundle id of the app")
    parser_bump.add_argument(
        "--release",
        default="PATCH",
        type=str.upper,
        choices=["MAJOR", "MINOR", "PATCH"],
        help="Version component to increment (default: PATCH)",
    )
    parser_bump.add_argument(
        "--status",
        default="active",
        help="Status of the app to look up (default: active)",
    )
    _add_common_flags(parser_bump)
    parser_bump.set_defaults(func=cmd_bump_version)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the awr CLI.

    This function is registered as the 'awr' console script in pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
