from __future__ import annotations

from etf_projector.tools.projection_tools import tool_project
from etf_projector.utils.answer_format import format_currency


def main():
    payload = {
        "initial": "10000",
        "monthly": "500",
        "years": "10",
        "rate": "10",
    }
    out = tool_project(payload)
    for pt in out["series"]:
        print(f"Year {pt['year_index']:>2}: {format_currency(pt['balance'])}")
    print("Total value:", format_currency(out["final_balance"]))
    print("Total contributed:", format_currency(out["total_contributed"]))
    print("Interest earned:", format_currency(out["total_growth"]))

if __name__ == "__main__":
    main()
