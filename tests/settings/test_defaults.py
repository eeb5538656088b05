from kubetyped._cogs.configs.configuration import ClientSettings


def test_defaults():
    settings = ClientSettings()
    assert settings.networking.request_timeout == 300
    assert settings.networking.connect_timeout is None
    assert settings.watching.server_timeout is None
    assert settings.watching.client_timeout is None
    assert settings.watching.connect_timeout is None
    assert settings.watching.chunk_size == 1024 * 1024


def test_settings_are_not_shared():
    settings1 = ClientSettings()
    settings2 = ClientSettings()
    settings1.watching.server_timeout = 123
    assert settings2.watching.server_timeout is None
