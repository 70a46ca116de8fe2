from datetime import timedelta

import pytest

from slothgen.alert import SLO, AlertSeverity, Generator, MWMBAlert, MWMBAlertGroup
from slothgen.windows import FSWindowsRepo, WindowsError

SPEC_7D = """
apiVersion: sloth.slok.dev/v1
kind: AlertWindows
spec:
  sloPeriod: 7d
  page:
    quick:
      errorBudgetPercent: 8
      shortWindow: 5m
      longWindow: 1h
    slow:
      errorBudgetPercent: 12.5
      shortWindow: 30m
      longWindow: 6h
  ticket:
    quick:
      errorBudgetPercent: 20
      shortWindow: 2h
      longWindow: 1d
    slow:
      errorBudgetPercent: 42
      shortWindow: 6h
      longWindow: 3d
  
"""

EB = 0.09999999999999432
MIN = timedelta(minutes=1)
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


def _group(pq, ps, tq, ts):
    return MWMBAlertGroup(
        page_quick=MWMBAlert("test-page-quick", 5 * MIN, 1 * HOUR, pq, EB, AlertSeverity.PAGE),
        page_slow=MWMBAlert("test-page-slow", 30 * MIN, 6 * HOUR, ps, EB, AlertSeverity.PAGE),
        ticket_quick=MWMBAlert("test-ticket-quick", 2 * HOUR, 1 * DAY, tq, EB, AlertSeverity.TICKET),
        ticket_slow=MWMBAlert("test-ticket-slow", 6 * HOUR, 3 * DAY, ts, EB, AlertSeverity.TICKET),
    )


def _repo(kind, tmp_path):
    if kind == "default":
        return FSWindowsRepo()
    if kind == "custom-7d":
        (tmp_path / "7d.yaml").write_text(SPEC_7D)
    return FSWindowsRepo(tmp_path)


@pytest.mark.parametrize(
    "windows_kind, days, expected",
    [
        ("default", 42, None),
        ("default", 30, _group(14.4, 6, 3, 1)),
        ("default", 28, _group(13.44, 5.6000000000000005, 2.8000000000000003, 0.9333333333333333)),
        ("empty", 30, None),
        ("empty", 28, None),
        ("custom-7d", 7, _group(13.44, 3.5, 1.4000000000000001, 0.98)),
    ],
)
def test_generate_mwmb_alerts(tmp_path, windows_kind, days, expected):
    generator = Generator(_repo(windows_kind, tmp_path))
    slo = SLO(id="test", time_window=timedelta(days=days), objective=99.9)

    if expected is None:
        with pytest.raises(WindowsError, match="not supported"):
            generator.generate_mwmb_alerts(slo)
    else:
        assert generator.generate_mwmb_alerts(slo) == expected


def test_severity_values():
    group = Generator(FSWindowsRepo()).generate_mwmb_alerts(SLO("x", timedelta(days=30), 99.0))
    assert group.page_quick.severity.value == "page"
    assert group.ticket_slow.severity.value == "ticket"
    assert group.page_slow.id == "x-page-slow"
    assert group.page_quick.error_budget == 100 - 99.0