#!/usr/bin/env python

from io import BytesIO
from unittest.mock import MagicMock, Mock, patch

import pytest
from confluent_kafka import (OFFSET_BEGINNING, Consumer, KafkaError,
                             TopicPartition)
from confluent_kafka.admin import ClusterMetadata

from kafkacat.consumer import (PARTITION_UA, ConsumePipeline, PartitionEofTable,
                               PartitionState, consumer_run, eof_stored_offset,
                               offset_tail)
from kafkacat.context import RunContext
from kafkacat.error import FatalError
from kafkacat.format import OutputRenderer, compile_format
from tests.common import FakeMessage, cluster_metadata, eof_message


def make_pipeline(partitions=3, partition=PARTITION_UA, exit_eof=True, fmt='%s\\n', **kwargs):
    ctx = RunContext(**kwargs)
    consumer = MagicMock(spec=Consumer)
    consumer.list_topics.return_value = cluster_metadata(partitions=partitions)
    renderer = OutputRenderer(compile_format(fmt))
    return ConsumePipeline(ctx, consumer, 'test', renderer, BytesIO(),
                           partition=partition, exit_eof=exit_eof)


def test_eof_stored_offset():
    assert eof_stored_offset(0) == 0
    assert eof_stored_offset(1) == 0
    assert eof_stored_offset(57) == 56


def test_offset_tail():
    assert offset_tail(10) == -2010


def test_eof_table_threshold():
    ctx = RunContext()
    stopped = []
    table = PartitionEofTable(ctx, [0, 1, 2], 3, stopped.append)

    assert table.at_eof(0)
    assert table.at_eof(1)
    assert ctx.run
    assert table.states[2] is PartitionState.CONSUMING

    assert table.at_eof(2)
    assert not ctx.run
    assert stopped == [0, 1, 2]
    assert table.eof_cnt == 3


def test_eof_table_repeated_eof_counts_once():
    ctx = RunContext()
    stop_cb = Mock()
    table = PartitionEofTable(ctx, [0, 1], 2, stop_cb)

    assert table.at_eof(1)
    assert not table.at_eof(1)

    assert table.eof_cnt == 1
    assert ctx.run
    stop_cb.assert_called_once_with(1)


def test_eof_table_stop_is_idempotent():
    stop_cb = Mock()
    table = PartitionEofTable(RunContext(), [0], 1, stop_cb)

    table.at_eof(0)
    table.stop(0)
    table.stop(0)

    stop_cb.assert_called_once_with(0)
    assert table.states[0] is PartitionState.STOPPED


def test_start_assigns_all_partitions():
    pipeline = make_pipeline(partitions=3)

    assert pipeline.start(OFFSET_BEGINNING) == [0, 1, 2]

    pipeline.consumer.assign.assert_called_once_with(
        [TopicPartition('test', p, OFFSET_BEGINNING) for p in range(3)])
    assert pipeline.eof_table.threshold == 3


def test_start_single_partition():
    pipeline = make_pipeline(partitions=3, partition=1)

    assert pipeline.start(5) == [1]

    pipeline.consumer.assign.assert_called_once_with([TopicPartition('test', 1, 5)])
    assert pipeline.eof_table.threshold == 1


def test_start_unknown_partition():
    pipeline = make_pipeline(partitions=2, partition=7)

    with pytest.raises(FatalError) as ex:
        pipeline.start()
    assert str(ex.value) == 'Topic test (with partitions 0..1): partition 7 does not exist'
    pipeline.consumer.assign.assert_not_called()


def test_start_missing_topic():
    pipeline = make_pipeline()
    pipeline.consumer.list_topics.return_value = ClusterMetadata()

    with pytest.raises(FatalError, match='No such topic in cluster: test'):
        pipeline.start()


def test_start_topic_error():
    pipeline = make_pipeline()
    pipeline.consumer.list_topics.return_value = cluster_metadata(
        partitions=0, error=KafkaError(KafkaError.UNKNOWN_TOPIC_OR_PART, 'Unknown topic'))

    with pytest.raises(FatalError, match='Topic test error: Unknown topic'):
        pipeline.start()


def test_start_no_partitions():
    pipeline = make_pipeline(partitions=0)

    with pytest.raises(FatalError, match='Topic test has no partitions'):
        pipeline.start()


def test_handle_renders_and_stores_offset():
    pipeline = make_pipeline()
    pipeline.start()
    msg = FakeMessage(partition=2, offset=9, value=b'hello')

    pipeline.handle(msg)

    assert pipeline.fp.getvalue() == b'hello\n'
    assert pipeline.offsets == {2: 9}
    # The client persists the offset following the message
    pipeline.consumer.store_offsets.assert_called_once_with(message=msg)
    assert pipeline.ctx.stats.rx == 1


def test_handle_eof_offsets():
    pipeline = make_pipeline(exit_eof=False)
    pipeline.start()

    pipeline.handle(eof_message(0, 0))
    pipeline.handle(eof_message(1, 57))

    assert pipeline.offsets == {0: 0, 1: 56}
    stored = [c.kwargs['offsets'][0] for c in pipeline.consumer.store_offsets.call_args_list]
    assert [(tp.topic, tp.partition, tp.offset) for tp in stored] == [('test', 0, 0), ('test', 1, 57)]
    assert pipeline.ctx.run
    pipeline.consumer.incremental_unassign.assert_not_called()


def test_handle_ignores_stopped_partition():
    pipeline = make_pipeline(partitions=2, fmt='%p:%s\\n')
    pipeline.start()

    pipeline.handle(eof_message(0, 3))
    pipeline.consumer.store_offsets.reset_mock()

    pipeline.handle(FakeMessage(partition=0, offset=3, value=b'late'))
    pipeline.handle(eof_message(0, 4))

    assert pipeline.fp.getvalue() == b''
    assert pipeline.offsets == {0: 2}
    assert pipeline.ctx.stats.rx == 0
    assert pipeline.eof_table.eof_cnt == 1
    pipeline.consumer.store_offsets.assert_not_called()

    pipeline.handle(FakeMessage(partition=1, offset=0, value=b'live'))
    assert pipeline.fp.getvalue() == b'1:live\n'


def test_handle_exit_at_eof():
    pipeline = make_pipeline(partitions=3)
    pipeline.start()

    pipeline.handle(eof_message(0, 10))
    pipeline.handle(eof_message(1, 0))
    assert pipeline.ctx.run

    pipeline.handle(eof_message(2, 3))
    assert not pipeline.ctx.run
    assert pipeline.consumer.incremental_unassign.call_count == 3


def test_handle_message_error_is_fatal():
    pipeline = make_pipeline()
    pipeline.start()

    msg = FakeMessage(partition=1, error=KafkaError(KafkaError._TRANSPORT, 'Broker transport failure'))
    with pytest.raises(FatalError, match=r'Topic test \[1\] error: Broker transport failure'):
        pipeline.handle(msg)


def test_handle_message_count():
    pipeline = make_pipeline(msg_cnt=2)
    pipeline.start()

    for offset in range(4):
        pipeline.handle(FakeMessage(offset=offset, value=str(offset).encode()))

    assert pipeline.fp.getvalue() == b'0\n1\n'
    assert pipeline.ctx.stats.rx == 2


def test_handle_broken_pipe_stops():
    pipeline = make_pipeline()
    pipeline.start()
    pipeline.fp = Mock()
    pipeline.fp.write.side_effect = BrokenPipeError()

    pipeline.handle(FakeMessage(value=b'x'))

    assert not pipeline.ctx.run
    assert pipeline.ctx.stats.rx == 0


def test_run_until_eof_and_stop():
    pipeline = make_pipeline(partitions=2, fmt='%p:%o:%s\\n')
    pipeline.start()
    pipeline.consumer.consume.side_effect = [
        [FakeMessage(partition=0, offset=0, value=b'a'), eof_message(0, 1)],
        [],
        [FakeMessage(partition=1, offset=4, value=b'b'), eof_message(1, 5),
         FakeMessage(partition=1, offset=5, value=b'late')],
    ]

    pipeline.run()
    pipeline.stop()

    assert pipeline.fp.getvalue() == b'0:0:a\n1:4:b\n'
    assert pipeline.consumer.consume.call_count == 3
    # Each partition is stopped exactly once
    assert pipeline.consumer.incremental_unassign.call_count == 2


def test_stop_without_eof():
    pipeline = make_pipeline(partitions=3, exit_eof=False)
    pipeline.start()

    pipeline.stop()
    pipeline.stop()

    assert pipeline.consumer.incremental_unassign.call_count == 3


def test_consumer_run_config_and_close():
    consumer = MagicMock(spec=Consumer)
    consumer.list_topics.return_value = cluster_metadata(partitions=1)
    consumer.consume.return_value = [FakeMessage(value=b'only'), eof_message(0, 1)]
    out = BytesIO()

    with patch('kafkacat.consumer.Consumer', return_value=consumer) as factory:
        consumer_run(RunContext(), {'bootstrap.servers': 'localhost'}, 'test',
                     OutputRenderer(compile_format('%s')), out, exit_eof=True)

    conf = factory.call_args.args[0]
    assert conf['group.id'] == 'kafkacat'
    assert conf['enable.partition.eof'] is True
    assert conf['enable.auto.offset.store'] is False
    assert out.getvalue() == b'only'
    consumer.close.assert_called_once_with()


def test_consumer_run_closes_on_fatal():
    consumer = MagicMock(spec=Consumer)
    consumer.list_topics.return_value = ClusterMetadata()

    with patch('kafkacat.consumer.Consumer', return_value=consumer):
        with pytest.raises(FatalError):
            consumer_run(RunContext(), {'group.id': 'g'}, 'test',
                         OutputRenderer(compile_format('%s')), BytesIO())

    consumer.close.assert_called_once_with()
