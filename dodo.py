import subprocess
import sys

from doit.task import Task

SOURCES = ["src", "test", "dodo.py"]


def task_format() -> Task:
    """
    Run formatters.
    """

    autoflake_args = ["autoflake", "-r", "-i", *SOURCES]
    isort_args = ["isort", *SOURCES]
    docformatter_args = ["docformatter", "-r", "-i", *SOURCES]
    black_args = ["black", *SOURCES]
    toml_sort_args = ["toml-sort", "-i", "pyproject.toml"]

    return Task(
        "format",
        actions=[
            (_run, (autoflake_args,)),
            (_run, (isort_args,)),
            # docformatter returns 3 if files were changed
            (_run, (docformatter_args, {0, 3})),
            (_run, (black_args,)),
            (_run, (toml_sort_args,)),
        ],
        targets=[],
        file_dep=[],
    )


def task_test() -> Task:
    """
    Run test suite.
    """

    return Task(
        "test",
        actions=[(_run, (["pytest", "test"],))],
        targets=[],
        file_dep=[],
        verbosity=2,
    )


def _run(cmd: list[str], expect_rc: int | set[int] = 0):
    expect_rcs = expect_rc if isinstance(expect_rc, set) else {expect_rc}
    print(f"=== Running: {' '.join(cmd)}")
    rc = subprocess.call(cmd)
    if rc not in expect_rcs:
        sys.exit(f"{cmd[0]} failed: rc={rc}, cmd={cmd}")
