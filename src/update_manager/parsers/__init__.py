"""
Output parsers for package manager listings.

Every parser is a pure function from raw command output to a list of
ParsedPackage rows. Parsers keep the order of the source output, skip
headers, separators and footers, never raise on unexpected input, and never
emit a row whose current and new versions are textually identical.
"""

from update_manager.parsers.delimited import parse_choco_outdated, parse_pipe_delimited
from update_manager.parsers.fixed_columns import parse_scoop_status, parse_winget_upgrade
from update_manager.parsers.json_map import parse_outdated_json
from update_manager.parsers.lines import parse_arrow_lines
from update_manager.parsers.tables import parse_box_table, parse_gap_table, split_cells

__all__ = [
    "parse_winget_upgrade",
    "parse_scoop_status",
    "parse_arrow_lines",
    "parse_box_table",
    "parse_gap_table",
    "split_cells",
    "parse_outdated_json",
    "parse_pipe_delimited",
    "parse_choco_outdated",
]
