#!/usr/bin/env python
"""Build script for the ESP32-S3 Rust firmware that keeps ESP-IDF vars out of the way."""
import argparse
import logging
import os
import subprocess
import sys

from esp_env import EnvironmentSetupError, show_vars, source_export_script, unset_vars

logger = logging.getLogger(__name__)

EXPORT_SCRIPT = '~/export-esp.sh'
TARGET = 'xtensa-esp32s3-espidf'
TOOLCHAIN = 'esp'

# Printed after sourcing to confirm the export worked
CHECK_VAR = 'LIBCLANG_PATH'

# esp-idf-sys manages its own ESP-IDF checkout when IDF_PATH is unset
CONFLICTING_VARS = ['IDF_PATH']

TEARDOWN_VARS = [
    'IDF_PATH',
    'ESP_IDF_PATH',
    'ESP_IDF_VERSION',
    'ESP_IDF_TOOLS_INSTALL_DIR',
]


def clean_command(toolchain=None):
    """Argv for cargo clean, optionally pinned to a rustup toolchain."""
    command = ['cargo']
    if toolchain:
        command.append(f'+{toolchain}')
    command.append('clean')
    return command


def build_command(target=TARGET, toolchain=TOOLCHAIN, release=True, example=None):
    """Argv for the cross build of the firmware or one of its examples."""
    command = ['cargo']
    if toolchain:
        command.append(f'+{toolchain}')
    command += ['build', '--target', target]
    if release:
        command.append('--release')
    if example:
        command += ['--example', example]
    return command


def run_step(command, env, cwd=None):
    """Run one cargo step with output going straight to the terminal."""
    print(f"$ {' '.join(command)}", flush=True)
    try:
        result = subprocess.run(command, env=dict(env), cwd=cwd)
    except FileNotFoundError:
        print(f"Error: '{command[0]}' not found in PATH", flush=True)
        return 127
    if result.returncode != 0:
        logger.warning("%s exited with code %d", ' '.join(command), result.returncode)
    return result.returncode


def run_build(options, env=None):
    if env is None:
        env = os.environ

    returncode = 0
    try:
        source_export_script(options.export_script, env)
        show_vars([CHECK_VAR], env)
        unset_vars(CONFLICTING_VARS, env)

        if not options.no_clean:
            returncode = run_step(clean_command(), env, options.project_dir)
        if returncode == 0:
            returncode = run_step(
                build_command(
                    target=options.target,
                    toolchain=options.toolchain,
                    release=not options.debug,
                    example=options.example,
                ),
                env,
                options.project_dir,
            )
    except EnvironmentSetupError as e:
        print(f"Error: {e}", flush=True)
        returncode = 1
    finally:
        unset_vars(TEARDOWN_VARS, env)
        show_vars(TEARDOWN_VARS, env)

    if returncode != 0:
        print(f"Build failed (exit code {returncode})", flush=True)
    return returncode


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Clean and build the ESP32-S3 firmware with the esp Rust toolchain."
    )
    parser.add_argument('--export-script', default=EXPORT_SCRIPT,
                        help=f"environment script to source (default: {EXPORT_SCRIPT})")
    parser.add_argument('--target', default=TARGET,
                        help=f"cargo target triple (default: {TARGET})")
    parser.add_argument('--toolchain', default=TOOLCHAIN,
                        help=f"rustup toolchain for the build (default: {TOOLCHAIN})")
    parser.add_argument('--debug', action='store_true',
                        help="build the debug profile instead of --release")
    parser.add_argument('--example', metavar='NAME',
                        help="build an example instead of the main binary")
    parser.add_argument('--no-clean', action='store_true',
                        help="skip cargo clean")
    parser.add_argument('--project-dir', default=None,
                        help="directory to run cargo in (default: current directory)")
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser.parse_args(argv)


def main(argv=None):
    options = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )
    return run_build(options)


if __name__ == '__main__':
    sys.exit(main())
