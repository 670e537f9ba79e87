#!/usr/bin/env python3
"""
Basic observation example for OverlayTreeLib.

This example demonstrates:
- Building a small tree and observing it with childList/subtree
- Batched delivery at an explicit flush
- Attribute filters and old values
- Delivery from an asyncio loop with AsyncioTurn
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from overlaytreelib import TreeContext
from overlaytreelib.aio import AsyncioTurn


def print_records(records, observer):
    print(f"Observer {observer.uid} received {len(records)} record(s):")
    for record in records:
        data = record.to_dict()
        if data['type'] == 'childList':
            added = ", ".join(node.name for node in record.added_nodes) or "-"
            removed = ", ".join(node.name for node in record.removed_nodes) or "-"
            print(f"  childList on {record.target.name}: +[{added}] -[{removed}]")
        else:
            print(f"  {data['type']} on {record.target.name}: "
                  f"{data['attributeName'] or 'data'} (was {data['oldValue']!r})")


def explicit_flush():
    """Mutate, then deliver everything at once."""
    context = TreeContext()
    mutator = context.mutator

    root = context.create_element('root')
    mutator.append(context.document, root)

    observer = context.create_observer(print_records)
    observer.subscribe(root, childList=True, subtree=True,
                       attributeFilter=['class'], attributeOldValue=True)

    item = context.create_element('item')
    mutator.append(root, item)
    mutator.append(item, context.create_text('hello'))
    mutator.set_attribute(item, 'class', 'active')
    mutator.set_attribute(item, 'class', 'inactive')
    mutator.set_attribute(item, 'id', 'not-reported')

    print("Flushing...")
    context.flush()


async def asyncio_delivery():
    """Let the event loop decide when the turn ends."""
    context = TreeContext(turn=AsyncioTurn())
    root = context.create_element('root')

    observer = context.create_observer(print_records)
    observer.subscribe(root, childList=True)

    for name in ('first', 'second', 'third'):
        context.mutator.append(root, context.create_element(name))

    print("Yielding to the loop...")
    await asyncio.sleep(0)


if __name__ == "__main__":
    explicit_flush()
    print("-" * 50)
    asyncio.run(asyncio_delivery())
