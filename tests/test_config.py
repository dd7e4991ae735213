"""
Tests for configuration and structured logging
"""

import json
import logging

from bank_ledger import config as config_module
from bank_ledger.config import LedgerConfig, get_config, reload_config
from bank_ledger.logging_config import JSONFormatter, log_action, setup_logging


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []
    
    def emit(self, record):
        self.records.append(record)


class TestLedgerConfig:
    """Test environment-based configuration"""
    
    def test_defaults(self, monkeypatch):
        """Test default configuration values"""
        monkeypatch.delenv("BANK_LEDGER_STORAGE_BACKEND", raising=False)
        config = LedgerConfig(_env_file=None)
        
        assert config.storage_backend == "memory"
        assert config.log_format == "json"
        assert config.log_file is None
    
    def test_environment_override(self, monkeypatch):
        """Test environment variables override defaults"""
        monkeypatch.setenv("BANK_LEDGER_STORAGE_BACKEND", "file")
        monkeypatch.setenv("BANK_LEDGER_TRANSACTIONS_FILE", "/tmp/ledger.txt")
        config = LedgerConfig(_env_file=None)
        
        assert config.storage_backend == "file"
        assert config.transactions_file == "/tmp/ledger.txt"
    
    def test_reload_config(self, monkeypatch):
        """Test reloading the global configuration"""
        monkeypatch.setenv("BANK_LEDGER_BANK_NAME", "Reloaded Bank")
        try:
            assert reload_config().bank_name == "Reloaded Bank"
            assert get_config() is config_module.config
        finally:
            monkeypatch.delenv("BANK_LEDGER_BANK_NAME")
            reload_config()


class TestLogging:
    """Test structured logging helpers"""
    
    def test_json_formatter(self):
        """Test JSON formatter output fields"""
        record = logging.LogRecord("bank_ledger.test", logging.INFO, __file__, 1, "hello", (), None)
        record.account_id = "AC001"
        record.action = "post_transaction"
        
        entry = json.loads(JSONFormatter().format(record))
        
        assert entry["level"] == "INFO"
        assert entry["message"] == "hello"
        assert entry["account_id"] == "AC001"
        assert entry["action"] == "post_transaction"
        assert "resource" not in entry
    
    def test_log_action_attaches_fields(self):
        """Test log_action attaches structured fields"""
        logger = logging.getLogger("bank_ledger_test.actions")
        handler = ListHandler()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
        try:
            log_action(logger, "info", "posted", account_id="AC001", resource="T1",
                       extra={"amount": "10.00"})
            log_action(logger, "debug", "filtered out")
        finally:
            logger.removeHandler(handler)
        
        assert len(handler.records) == 1
        record = handler.records[0]
        assert record.getMessage() == "posted"
        assert record.account_id == "AC001"
        assert record.resource == "T1"
        assert record.extra == {"amount": "10.00"}
    
    def test_setup_logging_text_to_file(self, tmp_path):
        """Test text logging to a file"""
        log_file = tmp_path / "ledger.log"
        logger = setup_logging("DEBUG", logger_name="bank_ledger_test.setup",
                               log_format="text", log_file=str(log_file))
        try:
            logger.debug("written")
            for handler in logger.handlers:
                handler.flush()
        finally:
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
                handler.close()
        
        assert "DEBUG bank_ledger_test.setup: written" in log_file.read_text()
    
    def test_setup_logging_replaces_handlers(self):
        """Test repeated setup does not duplicate handlers"""
        first = setup_logging("INFO", logger_name="bank_ledger_test.replace")
        second = setup_logging("WARNING", logger_name="bank_ledger_test.replace")
        
        assert first is second
        assert len(second.handlers) == 1
        assert isinstance(second.handlers[0].formatter, JSONFormatter)
        assert second.level == logging.WARNING
