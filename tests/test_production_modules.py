"""
Production Module Tests
=======================
Error handling, resource management and logging setup.
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import Mock, patch

from saxkeys.production.error_handler import (
    ErrorSeverity, ProductionErrorHandler, SynthSwapError,
)
from saxkeys.production.logging import LOGGER_NAME, ColorFormatter, setup_logging
from saxkeys.production.resource_manager import ProductionResourceManager, ResourceStatus
from saxkeys.tui import Color


def test_production_error_handler():
    """Severity levels are counted separately"""
    handler = ProductionErrorHandler()
    test_error = ValueError("Test error")

    handler.handle_error(test_error, 'test_operation', ErrorSeverity.LOW)
    stats = handler.get_error_statistics()
    assert stats['total_errors'] == 1
    assert stats['low_severity'] == 1

    handler.handle_error(test_error, 'test_operation', ErrorSeverity.HIGH)
    handler.handle_error(test_error, 'test_operation', ErrorSeverity.CRITICAL)
    stats = handler.get_error_statistics()
    assert stats['high_severity'] == 1
    assert stats['critical_errors'] == 1
    assert stats['error_counts'] == {'test_operation': 3}
    assert stats['recent_errors'] == 3

    handler.reset_statistics()
    assert handler.get_error_statistics()['total_errors'] == 0


def test_synth_swap_errors_not_recovered():
    handler = ProductionErrorHandler()
    strategy = Mock(return_value=True)
    handler.register_recovery_strategy('synth_swap', strategy)

    result = handler.handle_error(RuntimeError("boom"), 'synth_swap', ErrorSeverity.HIGH,
                                  details={'requested': 'fmsine'})

    assert result is False
    strategy.assert_not_called()
    last = handler.last_error()
    assert last.user_message == "Could not switch to fmsine oscillator"
    assert any("still active" in s for s in last.solutions)


def test_sample_load_recovery_suggests_soundfont(tmp_path):
    (tmp_path / "FluidR3_GM.sf2").write_bytes(b"RIFF")
    handler = ProductionErrorHandler()
    details = {}

    with patch('saxkeys.production.error_handler.SOUNDFONT_SEARCH_PATHS', [tmp_path]):
        result = handler.handle_error(FileNotFoundError("sax.sf2"), 'sample_load',
                                      ErrorSeverity.MEDIUM, details)

    assert result is True
    assert details['suggested_soundfont'] == str(tmp_path / "FluidR3_GM.sf2")


def test_circuit_breaker_opens():
    handler = ProductionErrorHandler(breaker_threshold=3)
    strategy = Mock(return_value=False)
    handler.register_recovery_strategy('sample_load', strategy)

    for _ in range(3):
        handler.handle_error(OSError("bad"), 'sample_load')
    assert handler.get_error_statistics()['circuit_breakers_open'] == 1

    handler.handle_error(OSError("bad"), 'sample_load')
    assert strategy.call_count == 3


def test_error_history_bounded():
    handler = ProductionErrorHandler(max_history=5)
    for i in range(12):
        handler.handle_error(ValueError(str(i)), 'audio_output', ErrorSeverity.LOW)

    assert len(handler.error_history) == 5
    assert str(handler.last_error('audio_output').error) == "11"
    assert handler.last_error('sample_load') is None


def test_format_error():
    handler = ProductionErrorHandler()
    handler.handle_error(RuntimeError("no stream"), 'audio_output', ErrorSeverity.HIGH,
                         details={'device': 'hw:0'})
    text = handler.format_error(handler.last_error())

    assert "Audio Output Failed" in text
    assert "1. Check that an output device is available" in text
    assert "device: hw:0" in text


def test_synth_swap_error_fields():
    error = SynthSwapError("nope", requested_type="square", previous_type="sine")
    assert str(error) == "nope"
    assert error.requested_type == "square"
    assert error.previous_type == "sine"


def test_production_resource_manager():
    """Resources are cleaned up in reverse registration order"""
    manager = ProductionResourceManager()
    order = []

    manager.register_resource('output', Mock(), lambda r: order.append('output'))
    manager.register_resource('synth', Mock(), lambda r: order.append('synth'))

    results = manager.cleanup_all()
    assert results == {'synth': True, 'output': True}
    assert order == ['synth', 'output']
    assert manager.get_metrics()['resources_cleaned'] == 2
    assert manager.get_metrics()['registered_resources'] == 0


def test_bound_cleanup_called_without_arguments():
    class Closable:
        def __init__(self):
            self.closed = False

        def close(self):
            self.closed = True

    resource = Closable()
    manager = ProductionResourceManager()
    manager.register_resource('closable', resource, resource.close)

    assert manager.cleanup_resource('closable') is True
    assert resource.closed
    assert manager.get_resource_status('closable').status == ResourceStatus.CLEANED
    # Already cleaned
    assert manager.cleanup_resource('closable') is True


def test_failing_cleanup_retried():
    manager = ProductionResourceManager(max_cleanup_retries=3, retry_delay=0)
    cleanup = Mock(side_effect=RuntimeError("stuck"))
    manager.register_resource('stuck', Mock(), cleanup)

    assert manager.cleanup_all() == {'stuck': False}
    assert cleanup.call_count == 3
    assert manager.get_metrics()['cleanup_failures'] == 1


def test_unregister_cleans_up():
    manager = ProductionResourceManager()
    cleanup = Mock()
    manager.register_resource('thing', 'value', cleanup)

    assert manager.unregister_resource('thing') is True
    cleanup.assert_called_once_with('value')
    assert manager.unregister_resource('thing') is False


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "logs" / "saxkeys.log"
    setup_logging(verbose=True)
    logger = setup_logging(verbose=False, log_file=log_file)

    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2
    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    assert log_file.parent.exists()

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_color_formatter():
    record = logging.LogRecord('saxkeys.test', logging.WARNING, __file__, 1, "careful", None, None)

    colored = ColorFormatter(use_colors=True).format(record)
    assert colored.startswith(Color.ORANGE)
    assert colored.endswith(Color.RESET)

    plain = ColorFormatter(use_colors=False).format(record)
    assert plain == "WARNING saxkeys.test: careful"
