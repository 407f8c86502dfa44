"""Basic smoke tests for the package layout."""

def test_imports():
    import agents.response_evaluator  # noqa: F401
    import api_server  # noqa: F401
    from config.settings import settings

    assert settings.DB_PATH.endswith(".db")
