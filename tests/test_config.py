"""
Unit tests for config module.
Tests environment variable loading and configuration.
"""

import importlib
import unittest
import os
from unittest.mock import patch

import config


class TestConfig(unittest.TestCase):
    """Test suite for configuration loading."""

    def tearDown(self):
        importlib.reload(config)

    @patch.dict(os.environ, {
        'BOT_TOKEN': 'test_bot_token_12345',
        'CANVAS_TOKEN': 'test_canvas_token_67890',
        'CHANNEL_ID': '123456789',
        'CANVAS_BASE_URL': 'https://test.canvas.com/api/v1'
    })
    def test_config_loads_environment_variables(self):
        """Test that config module loads environment variables."""
        importlib.reload(config)

        self.assertEqual(config.BOT_TOKEN, 'test_bot_token_12345')
        self.assertEqual(config.CANVAS_TOKEN, 'test_canvas_token_67890')
        self.assertEqual(config.CHANNEL_ID, '123456789')
        self.assertEqual(config.CANVAS_BASE_URL, 'https://test.canvas.com/api/v1')

    @patch.dict(os.environ, {
        'SUPABASE_URL': 'https://project.supabase.co',
        'SUPABASE_ANON_KEY': 'anon-key',
    })
    def test_supabase_falls_back_to_anon_key(self):
        """Test that the anon key is used when no service role key is set."""
        env = {k: v for k, v in os.environ.items() if k != 'SUPABASE_SERVICE_ROLE_KEY'}
        with patch.dict(os.environ, env, clear=True), patch('dotenv.load_dotenv'):
            importlib.reload(config)

            self.assertEqual(config.SUPABASE_URL, 'https://project.supabase.co')
            self.assertEqual(config.SUPABASE_KEY, 'anon-key')

    @patch.dict(os.environ, {'LOG_LEVEL': 'DEBUG'})
    def test_log_level(self):
        """Test that the log level is read from the environment."""
        importlib.reload(config)

        self.assertEqual(config.LOG_LEVEL, 'DEBUG')

    def test_cache_settings_are_numbers(self):
        """Test that cache lifetimes are parsed as floats."""
        self.assertIsInstance(config.COURSE_CACHE_TTL, float)
        self.assertIsInstance(config.PERSISTED_CACHE_TTL, float)
        self.assertIsInstance(config.BACKGROUND_REFRESH_INTERVAL, float)


if __name__ == "__main__":
    unittest.main()
