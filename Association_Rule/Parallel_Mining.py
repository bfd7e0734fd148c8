# Parallel FP-Growth: a fixed pool of worker processes mining disjoint top-level branches
# Protocol: init -> ready, task -> result | error, shutdown. No memory is shared with the workers.

import logging
import multiprocessing
import queue
import traceback
from collections import namedtuple

import pandas as pd

from Association_Rule.FP_Mining import (
    conditional_frequency,
    filter_frequent_items,
    mine_conditional_tree,
    sort_items_ascending,
)
from definition.mining_errors import WorkerFailureError
from utils.item_mapper import ItemMapper
from utils.log_config import configure_logging

logger = logging.getLogger(__name__)

# Coordinator -> worker
InitMessage = namedtuple('InitMessage', ['mapper_snapshot', 'log_level'])
TaskMessage = namedtuple('TaskMessage', ['task_id', 'prefix', 'pattern_bases', 'conditional_items', 'absolute_min_support'])
ShutdownMessage = namedtuple('ShutdownMessage', [])

# Worker -> coordinator
ReadyMessage = namedtuple('ReadyMessage', ['worker_id'])
ResultMessage = namedtuple('ResultMessage', ['worker_id', 'task_id', 'itemsets'])
ErrorMessage = namedtuple('ErrorMessage', ['worker_id', 'error', 'traceback'])

# Seconds between liveness checks while waiting on the result queue
POLL_INTERVAL = 0.5
# Seconds a worker gets to exit after ShutdownMessage before it is terminated
SHUTDOWN_GRACE = 2.0


def perform_mining_task(task, mapper, log=None):
    """Steps 5-7 of the recursive algorithm for one top-level item, entirely local to the worker."""
    return mine_conditional_tree(
        task.pattern_bases,
        task.conditional_items,
        tuple(task.prefix),
        task.absolute_min_support,
        mapper,
        log,
    )


def _worker_entrypoint(worker_id, task_queue, result_queue):
    mapper = None
    while True:
        message = task_queue.get()
        try:
            if isinstance(message, InitMessage):
                configure_logging(message.log_level)
                mapper = ItemMapper.from_snapshot(message.mapper_snapshot, frozen=True)
                result_queue.put(ReadyMessage(worker_id))
            elif isinstance(message, TaskMessage):
                if mapper is None:
                    raise RuntimeError('Worker not initialized.')
                start_time = pd.Timestamp.now()
                itemsets = perform_mining_task(message, mapper, logger)
                duration = (pd.Timestamp.now() - start_time).total_seconds()
                logger.debug(f"[Worker {worker_id}] Task {message.task_id} produced {len(itemsets)} itemsets in {duration:.2f}s")
                result_queue.put(ResultMessage(worker_id, message.task_id, itemsets))
            elif isinstance(message, ShutdownMessage):
                return
            else:
                raise TypeError(f"Unknown message type: {type(message).__name__}")
        except Exception as e:
            result_queue.put(ErrorMessage(worker_id, f"{type(e).__name__}: {e}", traceback.format_exc()))


def build_mining_tasks(tree, frequent_items, absolute_min_support):
    """
    Sequential part of the coordinator, run against the shared top-level tree.

    Returns:
        tuple: (single-item itemsets dict, list of TaskMessage). Items without conditional
               frequent items produce no task.
    """
    single_itemsets = {}
    tasks = []
    for item in sort_items_ascending(frequent_items):
        single_itemsets[(item,)] = frequent_items[item]

        pattern_bases = tree.find_paths(item)
        if not pattern_bases:
            continue
        conditional_items = filter_frequent_items(conditional_frequency(pattern_bases), absolute_min_support)
        if conditional_items:
            tasks.append(TaskMessage(
                task_id=len(tasks),
                prefix=(item,),
                pattern_bases=pattern_bases,
                conditional_items=conditional_items,
                absolute_min_support=absolute_min_support,
            ))
    return single_itemsets, tasks


class _WorkerPool:
    def __init__(self, size, context=None):
        self.size = size
        self.context = context or multiprocessing.get_context()
        self.result_queue = self.context.Queue()
        self.task_queues = []
        self.processes = []

    def start(self):
        for worker_id in range(self.size):
            task_queue = self.context.Queue()
            process = self.context.Process(
                target=_worker_entrypoint,
                args=(worker_id, task_queue, self.result_queue),
                name=f"fp-growth-worker-{worker_id}",
                daemon=True,
            )
            process.start()
            self.task_queues.append(task_queue)
            self.processes.append(process)

    def send(self, worker_id, message):
        self.task_queues[worker_id].put(message)

    def broadcast(self, message):
        for worker_id in range(len(self.task_queues)):
            self.send(worker_id, message)

    def receive(self):
        # Blocks until a message arrives; a worker that died silently is reported as a failure
        while True:
            try:
                return self.result_queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                for worker_id, process in enumerate(self.processes):
                    if not process.is_alive():
                        raise WorkerFailureError(
                            f"Mining worker exited unexpectedly (exit code {process.exitcode})",
                            worker_id=worker_id,
                        )

    def shutdown(self):
        for task_queue in self.task_queues:
            try:
                task_queue.put(ShutdownMessage())
            except (OSError, ValueError):
                pass
        for process in self.processes:
            process.join(timeout=SHUTDOWN_GRACE)
        for process in self.processes:
            if process.is_alive():
                process.terminate()
                process.join()
        for task_queue in self.task_queues:
            task_queue.close()
        self.result_queue.close()


def run_parallel_mining(tree, frequent_items, absolute_min_support, mapper, log=None, parallelism=2, context=None):
    """
    Mines `tree` with a pool of `parallelism` worker processes.

    Args:
        tree (FPTree): top-level tree; only the coordinator reads it.
        frequent_items (dict): top-level frequent item id -> support.
        absolute_min_support (int): support threshold as a transaction count.
        mapper (ItemMapper): snapshot sent to every worker in its init message.
        parallelism (int): number of worker processes.
        context: optional multiprocessing context (defaults to the platform default).

    Returns:
        dict: itemset tuple -> support, identical to the sequential mine_logic() result.

    Raises:
        WorkerFailureError: on the first worker error; the pool is torn down and no partial result is returned.
    """
    log = log or logger
    log.info(f"Parallel mining using a process pool of size {parallelism}...")

    results, tasks = build_mining_tasks(tree, frequent_items, absolute_min_support)
    log.debug(f"Prepared {len(tasks)} mining tasks for {len(frequent_items)} frequent items.")
    if not tasks:
        return results

    pool = _WorkerPool(parallelism, context)
    try:
        pool.start()
        pool.broadcast(InitMessage(mapper.snapshot(), log.getEffectiveLevel()))

        ready_workers = 0
        while ready_workers < parallelism:
            message = pool.receive()
            if isinstance(message, ErrorMessage):
                raise WorkerFailureError(f"Mining worker failed: {message.error}",
                                         worker_id=message.worker_id, remote_traceback=message.traceback)
            if isinstance(message, ReadyMessage):
                ready_workers += 1
        log.debug(f"All {parallelism} workers are ready.")

        tasks_sent = 0
        for worker_id in range(min(parallelism, len(tasks))):
            pool.send(worker_id, tasks[tasks_sent])
            tasks_sent += 1

        tasks_completed = 0
        while tasks_completed < len(tasks):
            message = pool.receive()
            if isinstance(message, ErrorMessage):
                log.error(f"Worker {message.worker_id} error: {message.error}")
                raise WorkerFailureError(f"Mining worker failed: {message.error}",
                                         worker_id=message.worker_id, remote_traceback=message.traceback)
            if not isinstance(message, ResultMessage):
                continue

            results.update(message.itemsets)
            tasks_completed += 1
            if tasks_sent < len(tasks):
                # Round-robin on the completion count; the chosen worker may still be busy
                worker_id = tasks_completed % parallelism
                pool.send(worker_id, tasks[tasks_sent])
                tasks_sent += 1
    finally:
        pool.shutdown()

    log.debug(f"Parallel mining finished. {len(tasks)} tasks merged into {len(results)} itemsets.")
    return results
