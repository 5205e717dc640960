"""Property-based tests for result bundle filename parsing.

- Round trip: any scheme without an embedded date stamp is recovered intact
- Action mapping: Run and Build both map to build, Test to test
- Rejection: names without a known action prefix never parse
"""

import re
import string
from datetime import date

from hypothesis import given, strategies as st

from kgb.enums import BuildAction
from kgb.parsers import parse_result_filename

# =============================================================================
# Strategies
# =============================================================================

_DATE_STAMP = re.compile(r"-\d{4}\.\d{2}\.\d{2}_")

_SCHEME_ALPHABET = string.ascii_letters + string.digits + " -_."

schemes = st.text(alphabet=_SCHEME_ALPHABET, min_size=1, max_size=40).filter(
    lambda s: _DATE_STAMP.search(s) is None
)

prefixes = st.sampled_from(
    [("Test", BuildAction.TEST), ("Build", BuildAction.BUILD), ("Run", BuildAction.BUILD)]
)

timestamps = st.builds(
    lambda d, t, offset: f"{d:%Y.%m.%d}_{t:%H-%M-%S}{offset}",
    st.dates(min_value=date(2000, 1, 1), max_value=date(2099, 12, 31)),
    st.times(),
    st.sampled_from(["--0800", "-0700", "+0000", "+0100", "+0530"]),
)


# =============================================================================
# Properties
# =============================================================================


@given(prefix=prefixes, scheme=schemes, stamp=timestamps)
def test_scheme_and_action_are_recovered(
    prefix: tuple[str, BuildAction], scheme: str, stamp: str
) -> None:
    name, action = prefix

    result = parse_result_filename(f"{name}-{scheme}-{stamp}.xcresult")

    assert result is not None
    assert result.scheme == scheme
    assert result.action is action


@given(prefix=prefixes, scheme=schemes, stamp=timestamps)
def test_directory_prefix_does_not_change_result(
    prefix: tuple[str, BuildAction], scheme: str, stamp: str
) -> None:
    filename = f"{prefix[0]}-{scheme}-{stamp}.xcresult"

    assert parse_result_filename(f"/dd/App-xyz/Logs/Test/{filename}/") == (
        parse_result_filename(filename)
    )


@given(
    head=st.text(alphabet=string.ascii_letters, min_size=1, max_size=10).filter(
        lambda s: s not in {"Test", "Build", "Run"}
    ),
    scheme=schemes,
    stamp=timestamps,
)
def test_unknown_prefix_never_parses(head: str, scheme: str, stamp: str) -> None:
    assert parse_result_filename(f"{head}-{scheme}-{stamp}.xcresult") is None
