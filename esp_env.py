"""Pull ESP toolchain variables out of an export script and clear them again."""
import logging
import os
import shlex
import subprocess

logger = logging.getLogger(__name__)

# Bash bookkeeping that changes on every run and must not leak into the build env
SKIP_VARS = {'_', 'SHLVL', 'PWD', 'OLDPWD'}


class EnvironmentSetupError(RuntimeError):
    """The export script is missing, bash is unavailable, or the script failed."""


def parse_env_block(data):
    """Parse the NUL-separated output of ``env -0`` into a dict."""
    result = {}
    for entry in data.split(b'\0'):
        text = os.fsdecode(entry)
        key, sep, value = text.partition('=')
        if not sep or not key:
            continue
        result[key] = value
    return result


def source_export_script(path, env=None):
    """Source ``path`` in bash and apply what it exports onto ``env``.

    Returns a dict of the variables that were added or changed.
    """
    if env is None:
        env = os.environ
    path = os.path.expanduser(str(path))
    if not os.path.isfile(path):
        raise EnvironmentSetupError(f"Export script not found: {path}")

    script = f'source {shlex.quote(path)} >/dev/null && env -0'
    logger.debug("Sourcing %s", path)
    try:
        result = subprocess.run(
            ['bash', '-c', script],
            env=dict(env),
            capture_output=True,
        )
    except FileNotFoundError as e:
        raise EnvironmentSetupError(f"Cannot source {path}: bash not found") from e
    stderr = result.stderr.decode('utf-8', errors='replace').strip()
    if result.returncode != 0:
        raise EnvironmentSetupError(
            f"{path} exited with code {result.returncode}: {stderr}"
        )
    if stderr:
        logger.warning("%s: %s", path, stderr)

    changed = {}
    for key, value in parse_env_block(result.stdout).items():
        if key in SKIP_VARS or key.startswith('BASH_FUNC_'):
            continue
        if env.get(key) != value:
            changed[key] = value
    env.update(changed)
    logger.debug("Export script set %d variables: %s", len(changed), ', '.join(sorted(changed)))
    return changed


def show_vars(names, env=None):
    """Print each variable like ``echo $VAR`` would, blank when unset."""
    if env is None:
        env = os.environ
    for name in names:
        print(env.get(name, ''), flush=True)


def unset_vars(names, env=None):
    if env is None:
        env = os.environ
    for name in names:
        if env.pop(name, None) is not None:
            logger.debug("Unset %s", name)
