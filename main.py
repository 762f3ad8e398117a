
import random
import time
from bstdict import KeyNotFound, OrderedDict

SCENARIO_KEYS = [5, 3, 8, 1, 4, 7, 9]
BULK_SIZE = 10000


def run_smoke_test():
    print("--- bstdict smoke test ---")
    d = OrderedDict()
    for key in SCENARIO_KEYS:
        d.add(key, str(key))

    print(f"In-order keys: {list(d)}")
    print("Tree:")
    print(d.dump())

    snapshot = d.copy()
    d.remove(5)
    print(f"After remove(5): {list(d)} (copy still has {list(snapshot)})")

    try:
        d.lookup(5)
    except KeyNotFound as e:
        print(f"lookup(5): {e}")

    rng = random.Random(0)
    keys = rng.sample(range(BULK_SIZE * 10), BULK_SIZE)
    bulk = OrderedDict()

    start_time = time.time()
    for key in keys:
        bulk.add(key, key)
    for key in keys[::2]:
        bulk.remove(key)
    end_time = time.time()

    print(f"Bulk: {BULK_SIZE:,} adds + {len(keys[::2]):,} removes in {end_time - start_time:.2f}s, {len(bulk):,} keys left")
    remaining = list(bulk)
    print(f"Ascending: {remaining == sorted(remaining)}")


if __name__ == "__main__":
    run_smoke_test()
