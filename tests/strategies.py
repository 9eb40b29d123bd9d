"""Hypothesis strategies for property-based testing of batik-core types."""

from hypothesis import strategies as st

from batik_core import Err, Nothing, Ok, Pending, Ready, Some

# Basic value strategies
integers = st.integers()
texts = st.text(min_size=0, max_size=100)
booleans = st.booleans()

# JSON-safe payloads (no None, so Some(v) never collapses to null)
json_scalars = st.one_of(
    st.integers(min_value=-(2**53), max_value=2**53),
    st.text(max_size=50),
    st.booleans(),
    st.floats(allow_nan=False, allow_infinity=False),
)

# Exception strategies
exceptions = st.sampled_from(
    [
        ValueError('test'),
        TypeError('test'),
        RuntimeError('test'),
    ]
)

# Option / Result strategies
options = st.one_of(st.just(Nothing), integers.map(Some))
oks = integers.map(Ok)
errs = texts.map(Err)
results = st.one_of(oks, errs)
polls = st.one_of(st.just(Pending), integers.map(Ready))

# Pure functions for law checks
int_functions = st.sampled_from(
    [
        lambda x: x + 1,
        lambda x: x * 2,
        lambda x: -x,
        lambda x: x % 7,
    ]
)

text_functions = st.sampled_from(
    [
        str.upper,
        str.strip,
        lambda s: s[::-1],
        lambda s: f'<{s}>',
    ]
)
