"""
Sample VCD traces for the test-suite
====================================
Small hand-written traces, returned as text or as in-memory streams.
"""

import io
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from vcdmerge.parser import parse_document


def reset_trace(reset_time, data_delay=5, reset_name="reset", scope="top", timescale="1 ns"):
    """
    One module with a `reset` (0 -> 1 at `reset_time`) and a `data` signal
    that toggles `data_delay` ticks later.
    """
    return (
        "$date\n  today\n$end\n"
        "$version\n  sample\n$end\n"
        f"$timescale {timescale} $end\n"
        f"$scope module {scope} $end\n"
        f"$var wire 1 ! {reset_name} $end\n"
        "$var wire 1 % data $end\n"
        "$upscope $end\n"
        "$enddefinitions $end\n"
        "#0\n"
        "$dumpvars\n"
        "0!\n"
        "0%\n"
        "$end\n"
        f"#{reset_time}\n"
        "1!\n"
        f"#{reset_time + data_delay}\n"
        "1%\n"
    )


# Reset declared but never driven
SILENT_RESET = """\
$timescale 1 ns $end
$scope module top $end
$var wire 1 ! reset $end
$var wire 1 % data $end
$upscope $end
$enddefinitions $end
#0
$dumpvars
0%
$end
#10
1%
"""

# Nested scopes, a bus, a real and a comment
NESTED = """\
$date Mon Jan  1 00:00:00 2024 $end
$version sim 1.0 $end
$comment generated by hand $end
$timescale 10ps $end
$scope module top $end
$var wire 1 ! clk $end
$scope module core $end
$var reg 8 "# bus [7:0] $end
$var real 64 r1 temp $end
$upscope $end
$upscope $end
$enddefinitions $end
#0
$dumpvars
0!
bxxxxxxxx "#
r0 r1
$end
#5
1!
B00001111 "#
#10
0!
$comment mid-trace note $end
R2.5 r1
"""


def stream(text):
    return io.StringIO(text)


def parse(text, file_index=None):
    return parse_document(stream(text), file_index)


def ids_by_name(document):
    """Qualified name -> identifier of a parsed document."""
    return {var.qualified_name: var.identifier for var in document.variables}


def change_times(document, identifier, value=None):
    """Timestamps at which `identifier` changes (to `value`, if given)."""
    return [t for t, _, v in document.iter_changes([identifier]) if value is None or v == value]
