"""
Graph inspection helpers.
Print and summarise the structure of a recorded forward graph.
"""

from typing import Dict
from collections import Counter

import numpy as np


def _fan_outs(graph) -> list:
    fan_outs = [0] * len(graph.nodes)
    for node in graph.nodes:
        for tid in node.inputs:
            fan_outs[tid.index] += 1
    return fan_outs


def get_graph_stats(graph) -> Dict:
    """
    Graph statistics without printing.

    Args:
        graph: a Graph (or a Tape, whose graph is used)

    Returns:
        dict with node/edge counts, fan-in/fan-out and per-op counts
    """
    graph = getattr(graph, "graph", graph)
    if not graph.nodes:
        return {
            'nodes': 0,
            'edges': 0,
            'leaves': 0,
            'max_fan_in': 0,
            'avg_fan_in': 0.0,
            'max_fan_out': 0,
            'avg_fan_out': 0.0,
            'operations': {}
        }

    n_nodes = len(graph.nodes)
    fan_ins = [len(node.inputs) for node in graph.nodes]
    fan_outs = _fan_outs(graph)
    op_counter = Counter(node.op_tag for node in graph.nodes if not node.is_leaf)

    return {
        'nodes': n_nodes,
        'edges': sum(fan_ins),
        'leaves': sum(1 for node in graph.nodes if node.is_leaf),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(op_counter)
    }


def print_graph_summary(graph, detailed: bool = False) -> Dict:
    """
    Print a graph summary.

    Args:
        graph: Graph or Tape
        detailed: also list nodes (graphs of at most 100 nodes)

    Returns:
        the statistics dict from get_graph_stats
    """
    graph = getattr(graph, "graph", graph)
    stats = get_graph_stats(graph)
    if stats['nodes'] == 0:
        print("Empty computation graph")
        return stats

    print("\n" + "=" * 70)
    print("COMPUTATION GRAPH SUMMARY")
    print("=" * 70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Leaves:             {stats['leaves']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    n_ops = sum(stats['operations'].values()) or 1
    for op_tag, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / n_ops
        print(f"  {op_tag:16s}: {count:6,} ({pct:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        print()
        print_computation_graph(graph, max_nodes=100)

    print("=" * 70 + "\n")
    return stats


def print_computation_graph(graph, max_nodes: int = 20) -> None:
    """
    Print one line per node: index, tag, output shape and input indices.

    Args:
        graph: Graph or Tape
        max_nodes: how many nodes to print
    """
    graph = getattr(graph, "graph", graph)
    if not graph.nodes:
        print("Empty graph")
        return

    for node in graph.nodes[:max_nodes]:
        shape = graph.tensor(node.id).shape
        if node.is_leaf:
            print(f"Node {node.id.index:4d}: {node.op_tag:16s} {str(shape):12s} [{node.kind}]")
        else:
            inputs = ", ".join(f"Node{tid.index}" for tid in node.inputs)
            print(f"Node {node.id.index:4d}: {node.op_tag:16s} {str(shape):12s} <- [{inputs}]")

    if len(graph.nodes) > max_nodes:
        print(f"... ({len(graph.nodes) - max_nodes} more nodes)")
