import logging

import pytest

from kube_assistant.core.logger import get_logger, setup_logging


@pytest.fixture
def app_logger():
    logger = logging.getLogger("kube_assistant")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def test_get_logger_names():
    assert get_logger().name == "kube_assistant"
    assert get_logger("cluster.reader").name == "kube_assistant.cluster.reader"
    assert get_logger("kube_assistant.builder.machine").name == "kube_assistant.builder.machine"


def test_setup_logging_is_idempotent(app_logger):
    setup_logging("info", quiet=())
    setup_logging("warning", quiet=())

    stream_handlers = [h for h in app_logger.handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1
    assert app_logger.level == logging.WARNING


def test_setup_logging_quiets_client_libraries(app_logger):
    noisy = logging.getLogger("kube_assistant_test.noisy_client")
    noisy.setLevel(logging.NOTSET)

    setup_logging("info", quiet=["kube_assistant_test.noisy_client"])
    assert noisy.level == logging.WARNING

    noisy.setLevel(logging.NOTSET)
    setup_logging("debug", quiet=["kube_assistant_test.noisy_client"])
    assert noisy.level == logging.NOTSET
