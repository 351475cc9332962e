"""実行時間ログのデコレータのテスト"""

import logging

import pytest

from matome.core.utils.decorators import log_execution_time


@pytest.mark.asyncio
async def test_log_execution_time_async(caplog):
    """Given: デコレートされた非同期関数
    When: 呼び出す
    Then: 戻り値はそのままで、完了ログが出る
    """

    @log_execution_time
    async def async_func(value):
        return value * 2

    with caplog.at_level(logging.DEBUG):
        result = await async_func(21)

    assert result == 42
    assert "Function async_func completed" in caplog.text


@pytest.mark.asyncio
async def test_log_execution_time_async_reraises(caplog):
    @log_execution_time
    async def failing():
        raise ValueError("boom")

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ValueError):
            await failing()

    assert "Function failing failed" in caplog.text


def test_log_execution_time_sync(caplog):
    @log_execution_time
    def sync_func():
        return "ok"

    with caplog.at_level(logging.DEBUG):
        assert sync_func() == "ok"

    assert "Function sync_func completed" in caplog.text
    assert sync_func.__name__ == "sync_func"
