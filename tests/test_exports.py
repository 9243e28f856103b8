"""Tests for package exports."""


def test_public_exports_available() -> None:
    """Test that the public API is importable from the package root."""
    from cached_lookup import (
        CachedLookup,
        CachedLookupError,
        EmptyResultError,
        EventEmitter,
        LookupOptions,
        ValueRecord,
        cached_lookup,
        encode_key,
        parse_duration,
    )

    # Just verify they're importable
    assert CachedLookup is not None
    assert EventEmitter is not None
    assert LookupOptions is not None
    assert ValueRecord is not None
    assert cached_lookup is not None
    assert encode_key is not None
    assert parse_duration is not None
    assert issubclass(EmptyResultError, CachedLookupError)


def test_all_matches_exports() -> None:
    """Test that __all__ only lists names the package defines."""
    import cached_lookup

    for name in cached_lookup.__all__:
        assert hasattr(cached_lookup, name), name
