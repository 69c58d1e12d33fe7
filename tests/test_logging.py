# tests/test_logging.py

import json
import logging

import pytest

from relay_indexer.core.logging import (
    IndexerFormatter, IndexerLogger, JsonFormatter, LoggingMixin, log_with_context,
)
from relay_indexer.pipeline.cursor import CursorManager


def make_record(**context):
    record = logging.makeLogRecord({'name': 'relay_indexer.test', 'levelno': logging.INFO,
                                    'levelname': 'INFO', 'msg': 'Scanning blocks'})
    for key, value in context.items():
        setattr(record, key, value)
    return record


def test_structured_formatter_appends_known_context():
    record = make_record(job_name='agent_indexer', from_block=10, to_block=20, unrelated='x')

    line = IndexerFormatter(include_context=True).format(record)

    assert 'relay_indexer.test - INFO - Scanning blocks' in line
    assert line.endswith('| job_name=agent_indexer from_block=10 to_block=20')
    assert 'unrelated' not in line


def test_plain_formatter_omits_context():
    line = IndexerFormatter().format(make_record(job_name='agent_indexer'))
    assert 'job_name' not in line


def test_json_formatter_includes_all_context():
    payload = json.loads(JsonFormatter().format(make_record(job_name='feedback_indexer', outcome='skipped')))

    assert payload['message'] == 'Scanning blocks'
    assert payload['level'] == 'INFO'
    assert payload['job_name'] == 'feedback_indexer'
    assert payload['outcome'] == 'skipped'


def test_loggers_are_namespaced():
    assert IndexerLogger.get_logger('cli.context').name == 'relay_indexer.cli.context'
    assert IndexerLogger.get_logger('relay_indexer.core').name == 'relay_indexer.core'


def test_mixin_logger_is_named_after_the_class(repos):
    manager = CursorManager(repos.cursors)
    assert manager.logger.name == 'relay_indexer.pipeline.cursor.CursorManager'


def test_log_with_context_sets_record_attributes(caplog):
    logger = IndexerLogger.get_logger('test.context')
    with caplog.at_level(logging.INFO, logger='relay_indexer'):
        log_with_context(logger, logging.INFO, "Job not scheduled", job_name='trade_indexer',
                         reason='disabled')

    record = caplog.records[-1]
    assert record.getMessage() == "Job not scheduled"
    assert record.job_name == 'trade_indexer'
    assert record.reason == 'disabled'


def test_log_exception_carries_traceback(caplog):
    class Worker(LoggingMixin):
        pass

    worker = Worker()
    with caplog.at_level(logging.ERROR, logger='relay_indexer'):
        try:
            raise ValueError("bad log")
        except ValueError:
            worker.log_exception("Failed to index event", tx_hash='0xabc')

    record = caplog.records[-1]
    assert record.exc_info[0] is ValueError
    assert record.tx_hash == '0xabc'


@pytest.fixture
def fresh_logging():
    IndexerLogger.reset()
    yield
    IndexerLogger.reset()


def test_configure_is_one_shot(fresh_logging, tmp_path):
    IndexerLogger.configure(log_dir=tmp_path, log_level='WARNING', console_enabled=False,
                            file_enabled=True)
    assert IndexerLogger.is_configured()

    root = logging.getLogger('relay_indexer')
    assert root.level == logging.WARNING
    assert len(root.handlers) == 2
    assert (tmp_path / 'indexer.log').exists()

    IndexerLogger.configure(log_level='DEBUG', console_enabled=True)
    assert root.level == logging.WARNING
    assert len(root.handlers) == 2
