"""Report and scan tools."""

from analyst_mcp.tools.report import get_analyst_report
from analyst_mcp.tools.scans import get_squeeze_candidates, get_top_movers
from analyst_mcp.tools.verdicts import synthesize_verdicts

__all__ = [
    "get_analyst_report",
    "get_squeeze_candidates",
    "get_top_movers",
    "synthesize_verdicts",
]
