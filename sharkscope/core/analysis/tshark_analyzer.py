"""Run tshark in read mode against a capture file.

Builds the command for an AnalysisRequest, runs it to completion and
returns the engine's output. Filters and field names are handed to tshark
unchanged; they are never interpreted here.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess

from sharkscope.models.analysis import AnalysisRequest, OutputFormat
from sharkscope.models.errors import (
    AnalysisError,
    ANALYSIS_ENGINE_FAILED,
    ANALYSIS_FILE_NOT_FOUND,
)

logger = logging.getLogger(__name__)

STDERR_DETAIL_CHARS = 2000


def build_analysis_command(tshark_path: str, request: AnalysisRequest) -> list[str]:
    """Build the tshark read command for an analysis request.

    Args:
        tshark_path: tshark executable
        request: Resolved analysis parameters

    Returns:
        Command as list of arguments
    """
    cmd = [tshark_path, "-r", str(request.file_path)]

    if request.keylog_file:
        cmd.extend(["-o", f"tls.keylog_file:{request.keylog_file}"])

    if request.display_filter:
        cmd.extend(["-Y", request.display_filter])

    if request.output_format == OutputFormat.JSON:
        cmd.extend(["-T", "json"])
    elif request.output_format == OutputFormat.FIELDS:
        cmd.extend(["-T", "fields"])
        for field_name in request.fields:
            cmd.extend(["-e", field_name])

    return cmd


def process_output(stdout: str, output_format: OutputFormat) -> str:
    """Normalize raw engine output for its format.

    JSON is re-indented for readability; if it does not parse it is
    returned as-is. Other formats pass through untouched.
    """
    if output_format == OutputFormat.JSON:
        try:
            return json.dumps(json.loads(stdout), indent=2, ensure_ascii=False)
        except ValueError:
            logger.debug("tshark JSON output did not parse, returning raw text")
            return stdout
    return stdout


def analyze_capture_file(tshark_path: str, request: AnalysisRequest) -> str:
    """Analyze a capture file and return the processed output.

    Blocks until tshark finishes; no timeout is applied. Output is
    collected in full, however large.

    Args:
        tshark_path: tshark executable
        request: Resolved analysis parameters

    Returns:
        Engine output (JSON pretty-printed)

    Raises:
        AnalysisError: ANALYSIS_FILE_NOT_FOUND if the file is missing,
            ANALYSIS_ENGINE_FAILED if tshark cannot run or exits non-zero
    """
    if not request.file_path.is_file():
        raise AnalysisError(
            code=ANALYSIS_FILE_NOT_FOUND,
            message=(
                f"Capture file '{request.file_path}' not found or not a file. "
                f"Check the path (it must be readable by the server)"
            ),
            details={"file_path": str(request.file_path)},
        )

    env = dict(os.environ)
    if request.keylog_file:
        logger.info(f"Using TLS key log file for decryption (path={request.keylog_file})")
        env["SSLKEYLOGFILE"] = request.keylog_file

    cmd = build_analysis_command(tshark_path, request)
    logger.info(
        f"Analyzing capture "
        f"(file={request.file_path}, format={request.output_format.value}, "
        f"filter={request.display_filter})"
    )
    logger.debug(f"Built analysis command (cmd={cmd})")

    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            env=env,
            shell=False,
        )
    except OSError as e:
        logger.error(f"Failed to run tshark (error={str(e)})")
        raise AnalysisError(
            code=ANALYSIS_ENGINE_FAILED,
            message=f"Failed to run tshark: {str(e)}",
            details={"error": str(e)},
        )

    stdout = result.stdout.decode("utf-8", errors="replace")
    stderr = result.stderr.decode("utf-8", errors="replace").strip()

    if result.returncode != 0:
        logger.warning(
            f"tshark analysis failed (file={request.file_path}, code={result.returncode})"
        )
        raise AnalysisError(
            code=ANALYSIS_ENGINE_FAILED,
            message=(
                f"tshark exited with code {result.returncode} while analyzing "
                f"'{request.file_path}'. Check the display filter and field names"
            ),
            details={
                "exit_code": result.returncode,
                "stderr": stderr[-STDERR_DETAIL_CHARS:],
            },
        )

    if stderr:
        logger.debug(f"tshark stderr: {stderr[-STDERR_DETAIL_CHARS:]}")

    return process_output(stdout, request.output_format)
