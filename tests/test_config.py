"""
Tests for configuration system
"""
from datetime import timedelta
import pytest
from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    SecretPolicyError,
    StoragePolicyError,
    TestingConfig,
    get_config,
    parse_duration,
    validate_secret_config,
    validate_storage_config
)


@pytest.mark.unit
class TestBaseConfig:
    """Tests for base configuration"""

    def test_base_config_has_secret_key(self):
        """Test that base config has a secret key"""
        config = Config()
        assert config.SECRET_KEY
        assert config.JWT_SECRET

    def test_base_config_has_max_content_length(self):
        """Test that base config limits request bodies"""
        assert Config.MAX_CONTENT_LENGTH == 10 * 1024 * 1024

    def test_base_config_has_cors_settings(self):
        """Test that base config has CORS settings"""
        config = Config()
        assert 'PUT' in config.CORS_METHODS
        assert 'DELETE' in config.CORS_METHODS
        assert 'Authorization' in config.CORS_ALLOW_HEADERS

    def test_base_config_signs_with_hs256(self):
        assert Config.JWT_ALGORITHM == 'HS256'
        assert isinstance(Config.JWT_EXPIRES_IN, timedelta)

    def test_base_config_api_prefix(self):
        assert Config.API_PREFIX == '/api'


@pytest.mark.unit
class TestParseDuration:
    """Tests for JWT_EXPIRE style durations"""

    @pytest.mark.parametrize('value,expected', [
        ('7d', timedelta(days=7)),
        ('12h', timedelta(hours=12)),
        ('30m', timedelta(minutes=30)),
        ('45s', timedelta(seconds=45)),
        ('3600', timedelta(seconds=3600)),
        (60, timedelta(seconds=60)),
    ])
    def test_parses_units(self, value, expected):
        assert parse_duration(value) == expected

    def test_garbage_falls_back_to_default(self):
        """Test that an unreadable value yields the seven day default"""
        assert parse_duration('soon') == timedelta(days=7)
        assert parse_duration('') == timedelta(days=7)


@pytest.mark.unit
class TestEnvironmentConfigs:
    """Tests for the per-environment classes"""

    def test_development_config_has_debug(self):
        config = DevelopmentConfig()
        assert config.DEBUG is True
        assert config.TESTING is False
        assert config.LOG_LEVEL == 'DEBUG'

    def test_production_config_has_debug_disabled(self):
        config = ProductionConfig()
        assert config.DEBUG is False
        assert config.PREFERRED_URL_SCHEME == 'https'

    def test_testing_config_uses_memory_database(self):
        """Test that testing config runs on in-memory SQLite"""
        config = TestingConfig()
        assert config.TESTING is True
        assert config.DATABASE_URL == 'sqlite://'

    def test_testing_config_disables_side_effects(self):
        """Test that testing config turns off rate limits, WhatsApp and seeding"""
        config = TestingConfig()
        assert config.RATELIMIT_ENABLED is False
        assert config.WHATSAPP_ENABLED is False
        assert config.SEED_ADMIN is False


@pytest.mark.unit
class TestGetConfig:
    """Tests for configuration selector"""

    def test_get_config_returns_development_by_default(self, monkeypatch):
        """Test that get_config returns development config by default"""
        monkeypatch.delenv('FLASK_ENV', raising=False)
        assert get_config() == DevelopmentConfig

    def test_get_config_reads_flask_env(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert get_config() == ProductionConfig

    def test_explicit_name_wins(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert get_config('testing') == TestingConfig

    def test_unknown_name_falls_back(self):
        assert get_config('staging') == DevelopmentConfig


@pytest.mark.unit
class TestStoragePolicy:
    """Tests for the production database requirement"""

    def test_production_without_database_fails(self):
        with pytest.raises(StoragePolicyError):
            validate_storage_config({'DEBUG': False, 'TESTING': False, 'DATABASE_URL': None})

    def test_production_with_database_passes(self):
        validate_storage_config({'DEBUG': False, 'DATABASE_URL': 'postgresql://db/crm'})

    def test_debug_without_database_passes(self):
        validate_storage_config({'DEBUG': True, 'DATABASE_URL': None})


@pytest.mark.unit
class TestSecretPolicy:
    """Tests for the production JWT secret requirement"""

    def test_production_without_jwt_secret_fails(self):
        with pytest.raises(SecretPolicyError):
            validate_secret_config({'DEBUG': False, 'TESTING': False, 'JWT_SECRET': ''})

    def test_production_with_jwt_secret_passes(self):
        validate_secret_config({'DEBUG': False, 'JWT_SECRET': 'x' * 48})

    def test_debug_without_jwt_secret_passes(self):
        validate_secret_config({'DEBUG': True, 'JWT_SECRET': ''})

    def test_create_app_refuses_production_without_jwt_secret(self, monkeypatch):
        """Test that the factory stops before serving with a per-process secret"""
        from app_init import create_app

        monkeypatch.setattr(ProductionConfig, 'DATABASE_URL', 'sqlite://')
        monkeypatch.setattr(ProductionConfig, 'JWT_SECRET', '')
        monkeypatch.setattr(ProductionConfig, 'LOG_FILE', None)
        with pytest.raises(SecretPolicyError):
            create_app('production')
