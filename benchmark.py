"""
benchmark.py — Build and query latency for the content engine.

Three measurements:

  Bench 1: Build cost vs N
    Time to tokenize + index, compute the similarity matrix and cluster,
    split by phase. The similarity matrix is O(N^2) so this is the curve
    that bounds usable corpus size.

  Bench 2: Search latency vs N
    p50/p95 of uncached multi-stage search over a synthetic travel corpus.

  Bench 3: Recommendation and link latency vs N
    p50/p95 of recommend() and total time of generate_links().

Run all:          python benchmark.py
Run one bench:    python benchmark.py --bench 2
"""

import sys, os, time, random, argparse
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from pathlib import Path
from typing import Dict, List

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))
from content_intelligence import ContentEngine, Document, EngineConfig
from content_intelligence.clustering import ClusterEngine
from content_intelligence.index import build_snapshot

FIGDIR = Path(__file__).parent / 'benchmark_figures'
DARK_BG = '#0f1219'; DARK_AXES = '#0a0e17'
C0, C1, C2, C3 = '#00d4ff', '#ff6b35', '#2ecc71', '#e74c3c'

def style(ax, title=''):
    ax.set_facecolor(DARK_AXES)
    ax.tick_params(colors='#9ca3af')
    ax.xaxis.label.set_color('#9ca3af')
    ax.yaxis.label.set_color('#9ca3af')
    if title: ax.set_title(title, color='white', fontsize=10)
    for s in ax.spines.values(): s.set_color('#2d3748')

def save_fig(fig, name):
    FIGDIR.mkdir(parents=True, exist_ok=True)
    fig.patch.set_facecolor(DARK_BG)
    p = FIGDIR / name
    plt.savefig(p, dpi=150, bbox_inches='tight', facecolor=DARK_BG)
    plt.close(fig)
    print(f"  → {p}")


# ---------------------------------------------------------------------------
# Corpus — synthetic travel blog posts
# Each post mixes one place with one activity so geographic, activity and
# semantic clusters overlap and optimization has real work to do.
# ---------------------------------------------------------------------------

PLACES = {
    'thailand': ('TH', ['Bangkok', 'Chiang Mai', 'Phuket', 'Krabi']),
    'vietnam': ('VN', ['Hanoi', 'Da Nang', 'Ho Chi Minh']),
    'colombia': ('CO', ['Medellin', 'Bogota', 'Cartagena']),
    'nepal': ('NP', ['Kathmandu', 'Pokhara']),
    'india': ('IN', ['Delhi', 'Goa', 'Kerala']),
    'indonesia': ('ID', ['Bali', 'Yogyakarta', 'Jakarta']),
}

ACTIVITIES = {
    'food': "street food stalls, a cooking class and dining at a local restaurant with regional cuisine",
    'temples': "temple visits, traditional ceremony and heritage sites that show the local culture",
    'beaches': "beach days, island hopping, snorkeling and diving in the clear ocean",
    'trekking': "a mountain trek, hiking trails and an adventure to explore remote villages",
    'transport': "the night train, a long bus ride, a taxi from the airport and a rented motorbike",
    'stays': "a hostel dorm, a quiet guesthouse and one splurge hotel stay",
}

FORMATS = ['Complete Guide to', 'My Story in', 'Budget Tips for', 'Photo Diary:', 'Honest Review of']

QUERIES = ['street food', 'temple', 'beach', 'trekking', 'bangkok', 'budget tips',
           'guesthouse', 'night train', 'cooking class', 'island hopping']


def make_corpus(n: int, seed: int = 42) -> List[Document]:
    rng = random.Random(seed)
    place_names = sorted(PLACES)
    activity_names = sorted(ACTIVITIES)
    docs = []
    for i in range(n):
        country = rng.choice(place_names)
        code, cities = PLACES[country]
        city = rng.choice(cities)
        activity = rng.choice(activity_names)
        fmt = rng.choice(FORMATS)
        title = f"{fmt} {activity.title()} in {city}"
        content = (f"Two weeks in {city}, {country.title()} meant {ACTIVITIES[activity]}. "
                   f"We spent {rng.randint(20, 90)} dollars a day and would go back. "
                   f"Note {i}: " + ' '.join(rng.sample(ACTIVITIES[activity].split(), 6)))
        docs.append(Document(
            id=f'post-{i:05d}',
            title=title,
            content=content,
            excerpt=f"{activity.title()} notes from {city}",
            tags=(country.title(), activity, city.lower()),
            location=country.title(),
            country_code=code,
            views=int(rng.paretovariate(1.2) * 50),
            content_quality=round(rng.uniform(0.3, 0.9), 2),
        ))
    return docs


def pct(values, q):
    return float(np.percentile(values, q)) if values else 0.0


# ---------------------------------------------------------------------------
# Bench 1: Build cost vs N
# ---------------------------------------------------------------------------

def bench1_build():
    print("\n── Bench 1: Build cost vs N ──")
    scales = [50, 100, 250, 500, 1000, 2000]
    config = EngineConfig()
    results = {}
    for n in scales:
        docs = make_corpus(n)

        t0 = time.perf_counter()
        build_snapshot(docs)
        index_ms = (time.perf_counter() - t0) * 1000

        clusterer = ClusterEngine(config)
        t0 = time.perf_counter()
        clusters = clusterer.generate_clusters(docs)
        cluster_ms = (time.perf_counter() - t0) * 1000

        results[n] = {'index_ms': index_ms, 'cluster_ms': cluster_ms,
                      'clusters': len(clusters),
                      'clustered': sum(len(c.members) for c in clusters)}
        r = results[n]
        print(f"  N={n:5d}: index={r['index_ms']:.0f}ms cluster={r['cluster_ms']:.0f}ms "
              f"clusters={r['clusters']} clustered={r['clustered']}/{n}")

    fig, axes = plt.subplots(1, 2, figsize=(12, 4))
    ns = scales

    ax = axes[0]
    ax.plot(ns, [results[n]['index_ms'] for n in ns], 'o-', color=C0, lw=2.5, ms=6, label='TF-IDF index')
    ax.plot(ns, [results[n]['cluster_ms'] for n in ns], 's-', color=C1, lw=2.5, ms=6, label='Similarity + clusters')
    ax.set_xscale('log'); ax.set_yscale('log')
    ax.set_xlabel('N documents'); ax.set_ylabel('Build time (ms)')
    ax.legend(fontsize=8)
    style(ax, 'Build Phases vs N')

    ax = axes[1]
    ax.bar(range(len(ns)), [results[n]['clustered'] / n for n in ns], color=C2, alpha=0.85)
    ax.set_xticks(range(len(ns)))
    ax.set_xticklabels([f'{n}' for n in ns], fontsize=8)
    ax.set_xlabel('N documents'); ax.set_ylabel('Fraction clustered')
    ax.set_ylim(0, 1.1)
    for i, n in enumerate(ns):
        ax.text(i, results[n]['clustered'] / n + 0.02, f"{results[n]['clusters']}",
                ha='center', fontsize=8, color='white')
    style(ax, 'Cluster Coverage (label = cluster count)')

    fig.suptitle('Bench 1: Build Cost vs Corpus Size', color='white',
                 fontsize=13, fontweight='bold')
    plt.tight_layout(rect=[0, 0, 1, 0.93])
    save_fig(fig, 'bench1_build.png')
    return results


# ---------------------------------------------------------------------------
# Bench 2: Search latency vs N
# ---------------------------------------------------------------------------

def bench2_search():
    print("\n── Bench 2: Search latency vs N ──")
    scales = [100, 500, 1000, 2000, 5000]
    rng = random.Random(7)
    results = {}
    for n in scales:
        engine = ContentEngine()
        engine.search_engine.initialize(make_corpus(n))

        lats = []
        for _ in range(40):
            q = rng.choice(QUERIES)
            engine.cache.clear()
            t0 = time.perf_counter()
            engine.search(q, limit=10)
            lats.append((time.perf_counter() - t0) * 1000)

        results[n] = {'p50': pct(lats, 50), 'p95': pct(lats, 95)}
        r = results[n]
        print(f"  N={n:5d}: p50={r['p50']:.2f}ms p95={r['p95']:.2f}ms")

    fig, ax = plt.subplots(figsize=(6, 4))
    ns = scales
    ax.plot(ns, [results[n]['p50'] for n in ns], 'o-', color=C0, lw=2.5, ms=6, label='p50')
    ax.plot(ns, [results[n]['p95'] for n in ns], 'o--', color=C0, lw=1.5, ms=5, alpha=0.6, label='p95')
    ax.axhline(10, color='white', ls=':', alpha=0.4, label='10ms')
    ax.set_xscale('log'); ax.set_xlabel('N documents'); ax.set_ylabel('Latency (ms)')
    ax.legend(fontsize=8)
    style(ax, 'Uncached Search Latency vs N')

    fig.suptitle('Bench 2: Search Latency', color='white', fontsize=13, fontweight='bold')
    plt.tight_layout(rect=[0, 0, 1, 0.9])
    save_fig(fig, 'bench2_search.png')
    return results


# ---------------------------------------------------------------------------
# Bench 3: Recommendations and links vs N
# ---------------------------------------------------------------------------

def bench3_related():
    print("\n── Bench 3: Recommendations and links vs N ──")
    scales = [50, 100, 250, 500, 1000]
    rng = random.Random(11)
    results: Dict[int, Dict] = {}
    for n in scales:
        docs = make_corpus(n)
        engine = ContentEngine()
        engine.rebuild(docs)

        rec_lats = []
        for _ in range(30):
            doc = rng.choice(docs)
            engine.cache.clear()
            t0 = time.perf_counter()
            engine.recommend(doc.id, count=5)
            rec_lats.append((time.perf_counter() - t0) * 1000)

        t0 = time.perf_counter()
        links = engine.generate_links()
        link_ms = (time.perf_counter() - t0) * 1000

        results[n] = {'rec_p50': pct(rec_lats, 50), 'rec_p95': pct(rec_lats, 95),
                      'link_ms': link_ms, 'links': len(links)}
        r = results[n]
        print(f"  N={n:5d}: recommend p50={r['rec_p50']:.2f}ms p95={r['rec_p95']:.2f}ms | "
              f"links={r['links']} in {r['link_ms']:.0f}ms")

    fig, axes = plt.subplots(1, 2, figsize=(12, 4))
    ns = scales

    ax = axes[0]
    ax.plot(ns, [results[n]['rec_p50'] for n in ns], 'o-', color=C2, lw=2.5, ms=6, label='p50')
    ax.plot(ns, [results[n]['rec_p95'] for n in ns], 'o--', color=C2, lw=1.5, ms=5, alpha=0.6, label='p95')
    ax.set_xscale('log'); ax.set_xlabel('N documents'); ax.set_ylabel('Latency (ms)')
    ax.legend(fontsize=8)
    style(ax, 'recommend() Latency vs N')

    ax = axes[1]
    ax.plot(ns, [results[n]['links'] for n in ns], 's-', color=C1, lw=2.5, ms=6, label='Links')
    ax.plot(ns, [min(500, n * 5) for n in ns], ':', color=C3, lw=1.5, label='Cap')
    ax.set_xscale('log'); ax.set_xlabel('N documents'); ax.set_ylabel('Links')
    ax.legend(fontsize=8)
    style(ax, 'Generated Links vs Cap')

    fig.suptitle('Bench 3: Recommendations and Internal Links', color='white',
                 fontsize=13, fontweight='bold')
    plt.tight_layout(rect=[0, 0, 1, 0.93])
    save_fig(fig, 'bench3_related.png')
    return results


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

ALL = {1: bench1_build,
       2: bench2_search,
       3: bench3_related}

def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('--bench', nargs='*', type=int, default=None)
    args = parser.parse_args()
    benches = args.bench if args.bench else sorted(ALL.keys())

    print(f"\n=== Content Engine Benchmark (benches: {benches}) ===")
    t0 = time.time()
    for b in benches:
        if b in ALL:
            ALL[b]()
    print(f"\nTotal: {time.time()-t0:.1f}s  Figures: {FIGDIR}/")

if __name__ == '__main__':
    main()
