"""Report assembly and rendering."""

from .assembler import assemble_run_report, exit_code
