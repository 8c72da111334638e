from walletdesk.auth import OAuthConfig, callback_redirect


def test_config_accepts_field_names_and_dumps_aliases():
    config = OAuthConfig(
        client_id="client-1",
        scopes=["openid"],
        redirect_uri="https://desk.example/auth/callback",
        is_demo=False,
    )

    assert config.model_dump(by_alias=True) == {
        "clientId": "client-1",
        "scopes": ["openid"],
        "redirectUri": "https://desk.example/auth/callback",
        "isDemo": False,
    }


def test_config_accepts_aliases():
    config = OAuthConfig.model_validate(
        {"clientId": "client-1", "scopes": [], "redirectUri": "/cb", "isDemo": True}
    )
    assert config.client_id == "client-1"
    assert config.is_demo is True


def test_config_uses_model_config_dict():
    assert OAuthConfig.model_config.get("populate_by_name") is True
    assert "Config" not in vars(OAuthConfig)


def test_callback_redirect_targets():
    assert callback_redirect(None, "access_denied") == "/?auth_error=access_denied"
    assert callback_redirect(None, None) == "/?auth_error=missing_code"
    assert callback_redirect("c0de", None) == "/dashboard?auth=success"
