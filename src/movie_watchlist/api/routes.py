# ruff: noqa: E501

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse

from movie_watchlist.core.catalog import CatalogConfigError
from movie_watchlist.core.schemas import (
    AddResponse,
    CatalogEntry,
    ReviewRequest,
    SearchErrorOut,
    SearchResponse,
    SearchResult,
    WatchlistItem,
    WatchlistItemOut,
    WatchlistResponse,
    WatchlistStats,
    WatchlistView,
)
from movie_watchlist.core.search import SearchController, SearchError
from movie_watchlist.core.watchlist import WatchlistStore

router = APIRouter()


def _store(request: Request) -> WatchlistStore:
    return request.app.state.watchlist_store


def _controller(request: Request) -> SearchController:
    return request.app.state.search_controller


def _item_out(item: WatchlistItem) -> WatchlistItemOut:
    return WatchlistItemOut(
        imdb_id=item.imdb_id,
        title=item.title,
        year=item.year,
        poster=item.poster,
        kind=item.kind,
        has_poster=item.has_poster,
        watched=item.watched,
        rating=item.rating,
        review=item.review,
        added_at=item.added_at,
        state=item.state,
    )


def _search_response(
    store: WatchlistStore,
    *,
    query: str,
    results: list[CatalogEntry],
    error: SearchError | None,
    loading: bool,
) -> SearchResponse:
    return SearchResponse(
        query=query,
        loading=loading,
        results=[
            SearchResult(
                imdb_id=r.imdb_id,
                title=r.title,
                year=r.year,
                poster=r.poster,
                kind=r.kind,
                has_poster=r.has_poster,
                in_watchlist=store.contains(r.imdb_id),
            )
            for r in results
        ],
        error=SearchErrorOut(kind=error.kind, message=error.message) if error else None,
    )


def _current_search_state(request: Request) -> SearchResponse:
    state = _controller(request).state()
    return _search_response(
        _store(request),
        query=state.query,
        results=state.results,
        error=state.error,
        loading=state.loading,
    )


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/search", response_model=SearchResponse)
def search(request: Request, q: str = Query(default="")) -> SearchResponse:
    controller = _controller(request)
    try:
        outcome = controller.search(q)
    except CatalogConfigError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    # Empty queries and superseded responses leave the visible state as it was.
    if outcome.skipped or outcome.stale:
        return _current_search_state(request)

    if outcome.error is not None:
        status_code = 404 if outcome.error.kind == "not_found" else 502
        raise HTTPException(status_code=status_code, detail=outcome.error.message)

    return _search_response(
        _store(request),
        query=outcome.query,
        results=outcome.results,
        error=None,
        loading=controller.loading,
    )


@router.get("/api/search/state", response_model=SearchResponse)
def search_state(request: Request) -> SearchResponse:
    return _current_search_state(request)


@router.get("/api/watchlist", response_model=WatchlistResponse)
def list_watchlist(
    request: Request,
    view: WatchlistView = Query(default="all"),
) -> WatchlistResponse:
    store = _store(request)
    if view == "unwatched":
        items = store.unwatched()
    elif view == "watched":
        items = store.watched()
    else:
        items = store.items()

    return WatchlistResponse(
        view=view,
        items=[_item_out(m) for m in items],
        stats=store.stats(),
    )


@router.get("/api/watchlist/stats", response_model=WatchlistStats)
def watchlist_stats(request: Request) -> WatchlistStats:
    return _store(request).stats()


@router.post("/api/watchlist", response_model=AddResponse)
def add_to_watchlist(entry: CatalogEntry, request: Request) -> JSONResponse:
    store = _store(request)
    item = store.add(entry)
    if item is None:
        # Already present: report the existing item unchanged.
        existing = store.get(entry.imdb_id)
        if existing is None:
            # Removed between the two calls.
            raise HTTPException(status_code=409, detail="Watchlist changed, please retry")
        body = AddResponse(added=False, item=_item_out(existing))
        return JSONResponse(status_code=200, content=body.model_dump(mode="json"))

    body = AddResponse(added=True, item=_item_out(item))
    return JSONResponse(status_code=201, content=body.model_dump(mode="json"))


@router.get("/api/watchlist/{imdb_id}", response_model=WatchlistItemOut)
def get_watchlist_item(imdb_id: str, request: Request) -> WatchlistItemOut:
    item = _store(request).get(imdb_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Movie is not in the watchlist")
    return _item_out(item)


@router.delete("/api/watchlist/{imdb_id}", status_code=204)
def remove_from_watchlist(imdb_id: str, request: Request) -> Response:
    _store(request).remove(imdb_id)
    return Response(status_code=204)


@router.post("/api/watchlist/{imdb_id}/toggle-watched", response_model=WatchlistItemOut)
def toggle_watched(imdb_id: str, request: Request) -> WatchlistItemOut:
    item = _store(request).toggle_watched(imdb_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Movie is not in the watchlist")
    return _item_out(item)


@router.put("/api/watchlist/{imdb_id}/review", response_model=WatchlistItemOut)
def save_review(imdb_id: str, req: ReviewRequest, request: Request) -> WatchlistItemOut:
    item = _store(request).save_review(imdb_id, req.rating, req.review)
    if item is None:
        raise HTTPException(status_code=404, detail="Movie is not in the watchlist")
    return _item_out(item)


@router.get("/", response_class=HTMLResponse)
def index() -> HTMLResponse:
    """Single-page UI: search, to-watch and watched tabs plus the rate & review dialog."""

    html_doc = """<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
  <title>Movie Watchlist</title>
  <style>
    :root {
      --bg: #2a1550;
      --bg-alt: #172a5c;
      --panel: rgba(255, 255, 255, 0.1);
      --line: rgba(255, 255, 255, 0.2);
      --text: #ffffff;
      --muted: #d8c8f5;
      --accent: #facc15;
      --accent-ink: #3b1a6b;
      --ok: #4ade80;
      --danger: #fca5a5;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      color: var(--text);
      background: linear-gradient(135deg, var(--bg), #25206b 50%, var(--bg-alt));
      font-family: ui-sans-serif, system-ui, sans-serif;
      min-height: 100vh;
    }
    .container { max-width: 80rem; margin: 0 auto; padding: 1.5rem; }
    header { text-align: center; margin-bottom: 2rem; }
    h1 { margin: 0 0 .5rem 0; font-size: 2.6rem; }
    .muted { color: var(--muted); }
    .stats { display: grid; grid-template-columns: repeat(4, 1fr); gap: 1rem; margin-bottom: 1.5rem; }
    @media (max-width: 760px) { .stats { grid-template-columns: repeat(2, 1fr); } }
    .stat { background: var(--panel); border: 1px solid var(--line); border-radius: .6rem; padding: 1rem; }
    .stat .v { font-size: 1.9rem; font-weight: 700; }
    .stat .k { color: var(--muted); font-size: .85rem; }
    .card { background: var(--panel); border: 1px solid var(--line); border-radius: .6rem; padding: 1.4rem; }
    input, textarea, button { font: inherit; color: inherit; }
    .row { display: grid; grid-template-columns: 1fr auto; gap: .75rem; }
    input[type=text], textarea {
      width: 100%;
      padding: .75rem 1rem;
      border-radius: .6rem;
      border: 1px solid rgba(255, 255, 255, 0.3);
      background: rgba(255, 255, 255, 0.2);
    }
    textarea { height: 8rem; resize: none; }
    button {
      padding: .7rem 1.4rem;
      border-radius: .6rem;
      border: none;
      cursor: pointer;
      font-weight: 600;
    }
    button:disabled { opacity: .5; cursor: not-allowed; }
    .primary { background: var(--accent); color: var(--accent-ink); }
    .ghost { background: rgba(255, 255, 255, 0.2); color: var(--text); }
    .danger { background: rgba(239, 68, 68, 0.2); color: var(--danger); }
    .added { background: rgba(34, 197, 94, 0.2); color: #86efac; }
    .error { margin-top: .75rem; color: var(--danger); font-size: .9rem; }
    .tabs { display: flex; gap: 1rem; margin: 1.5rem 0; }
    .tab { background: var(--panel); color: var(--text); }
    .tab.active { background: var(--accent); color: var(--accent-ink); }
    .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(15rem, 1fr)); gap: 1.5rem; }
    .movie { background: var(--panel); border: 1px solid var(--line); border-radius: .6rem; overflow: hidden; }
    .poster { aspect-ratio: 2 / 3; position: relative; background: rgba(88, 28, 135, 0.5); display: flex; align-items: center; justify-content: center; }
    .poster img { width: 100%; height: 100%; object-fit: cover; }
    .poster .placeholder { font-size: 3rem; color: var(--muted); }
    .badge { position: absolute; top: .75rem; right: .75rem; background: #22c55e; border-radius: 999px; padding: .2rem .75rem; font-size: .85rem; font-weight: 600; }
    .body { padding: 1rem; }
    .body h3 { margin: 0 0 .25rem 0; font-size: 1.1rem; }
    .actions { display: flex; gap: .5rem; margin-top: .5rem; }
    .actions button { flex: 1; padding: .5rem; font-size: .9rem; }
    .wide { width: 100%; margin-top: .5rem; }
    .stars { color: var(--accent); letter-spacing: .1rem; }
    .review { font-style: italic; color: var(--muted); font-size: .9rem; }
    .empty { text-align: center; padding: 4rem 0; color: var(--muted); font-size: 1.1rem; }
    .modal { position: fixed; inset: 0; background: rgba(0, 0, 0, 0.6); display: none; align-items: center; justify-content: center; padding: 1rem; }
    .modal.open { display: flex; }
    .dialog { background: linear-gradient(135deg, #6b21a8, #312e81); border: 1px solid var(--line); border-radius: .6rem; padding: 1.5rem; width: 100%; max-width: 28rem; }
    .star-btn { background: none; padding: 0 .15rem; font-size: 2.2rem; color: var(--muted); }
    .star-btn.on { color: var(--accent); }
    label { display: block; font-weight: 600; margin: 1rem 0 .5rem 0; }
  </style>
</head>
<body>
  <div class=\"container\">
    <header>
      <h1>Movie Watchlist</h1>
      <div class=\"muted\">Search, track, and review your favorite movies</div>
    </header>

    <section class=\"stats\">
      <div class=\"stat\"><div class=\"v\" id=\"stat_total\">0</div><div class=\"k\">Total Movies</div></div>
      <div class=\"stat\"><div class=\"v\" id=\"stat_unwatched\" style=\"color:var(--accent)\">0</div><div class=\"k\">To Watch</div></div>
      <div class=\"stat\"><div class=\"v\" id=\"stat_watched\" style=\"color:var(--ok)\">0</div><div class=\"k\">Watched</div></div>
      <div class=\"stat\"><div class=\"v\" id=\"stat_avg\" style=\"color:#60a5fa\">0.0</div><div class=\"k\">Avg Rating</div></div>
    </section>

    <section class=\"card\">
      <div class=\"row\">
        <input id=\"query\" type=\"text\" placeholder=\"Search for movies...\" />
        <button id=\"search\" class=\"primary\">Search</button>
      </div>
      <div id=\"error\" class=\"error\" hidden></div>
    </section>

    <nav class=\"tabs\">
      <button class=\"tab active\" data-tab=\"search\">Search Results</button>
      <button class=\"tab\" data-tab=\"unwatched\">To Watch (<span id=\"count_unwatched\">0</span>)</button>
      <button class=\"tab\" data-tab=\"watched\">Watched (<span id=\"count_watched\">0</span>)</button>
    </nav>

    <main id=\"content\" class=\"grid\"></main>
    <div id=\"empty\" class=\"empty\"></div>
  </div>

  <div id=\"review_modal\" class=\"modal\">
    <div class=\"dialog\">
      <h3 style=\"margin-top:0\">Rate &amp; Review</h3>
      <div id=\"review_title\" class=\"muted\"></div>
      <label>Your Rating</label>
      <div id=\"review_stars\"></div>
      <label for=\"review_text\">Your Review (Optional)</label>
      <textarea id=\"review_text\" placeholder=\"What did you think about this movie?\"></textarea>
      <div class=\"actions\" style=\"margin-top:1.25rem\">
        <button id=\"review_save\" class=\"primary\">Save</button>
        <button id=\"review_cancel\" class=\"ghost\">Cancel</button>
      </div>
    </div>
  </div>

  <script>
    const $ = (id) => document.getElementById(id);
    const state = { tab: 'search', results: [], error: '', loading: false, items: [], stats: null, selected: null, rating: 0 };

    function esc(value) {
      return String(value ?? '').replace(/[&<>"']/g, (c) => ({'&': '&amp;', '<': '&lt;', '>': '&gt;', '"': '&quot;', "'": '&#39;'}[c]));
    }

    async function apiJSON(url, opts) {
      const resp = await fetch(url, opts);
      if (resp.status === 204) return null;
      const body = await resp.json().catch(() => ({}));
      if (!resp.ok) {
        throw new Error(body.detail || `${resp.status} ${resp.statusText}`);
      }
      return body;
    }

    function posterHtml(m) {
      const img = m.has_poster
        ? `<img src="${esc(m.poster)}" alt="${esc(m.title)}" />`
        : '<div class="placeholder">&#127902;</div>';
      const badge = m.watched ? '<div class="badge">&#10003; Watched</div>' : '';
      return `<div class="poster">${img}${badge}</div>`;
    }

    function starsHtml(rating) {
      let out = '';
      for (let s = 1; s <= 5; s++) out += s <= rating ? '&#9733;' : '&#9734;';
      return `<div><span class="stars">${out}</span> <strong>${rating}/5</strong></div>`;
    }

    function resultCard(m) {
      const btn = m.in_watchlist
        ? '<button class="wide added" disabled>&#10003; In Watchlist</button>'
        : `<button class="wide primary" data-add="${esc(m.imdb_id)}">+ Add to Watchlist</button>`;
      return `
        <article class="movie">
          ${posterHtml(m)}
          <div class="body">
            <h3>${esc(m.title)}</h3>
            <div class="muted">${esc(m.year)}</div>
            ${btn}
          </div>
        </article>`;
    }

    function watchlistCard(m) {
      const rating = m.watched && m.rating > 0 ? starsHtml(m.rating) : '';
      const review = m.review ? `<p class="review">"${esc(m.review)}"</p>` : '';
      return `
        <article class="movie">
          ${posterHtml(m)}
          <div class="body">
            <h3>${esc(m.title)}</h3>
            <div class="muted">${esc(m.year)}</div>
            ${rating}
            ${review}
            <div class="actions">
              <button class="ghost" data-toggle="${esc(m.imdb_id)}">${m.watched ? '&#10005; Unwatch' : '&#10003; Watched'}</button>
              <button class="primary" data-review="${esc(m.imdb_id)}">&#9733; ${m.rating > 0 ? 'Edit' : 'Rate'}</button>
            </div>
            <button class="wide danger" data-remove="${esc(m.imdb_id)}">Remove</button>
          </div>
        </article>`;
    }

    function render() {
      const stats = state.stats || { total: 0, unwatched: 0, watched: 0, average_rating: 0 };
      $('stat_total').textContent = stats.total;
      $('stat_unwatched').textContent = stats.unwatched;
      $('stat_watched').textContent = stats.watched;
      $('stat_avg').textContent = Number(stats.average_rating).toFixed(1);
      $('count_unwatched').textContent = stats.unwatched;
      $('count_watched').textContent = stats.watched;

      $('search').disabled = state.loading;
      $('search').textContent = state.loading ? 'Searching...' : 'Search';
      $('error').hidden = !state.error;
      $('error').textContent = state.error;

      document.querySelectorAll('.tab').forEach((el) => {
        el.classList.toggle('active', el.dataset.tab === state.tab);
      });

      let html = '';
      let empty = '';
      if (state.tab === 'search') {
        html = state.results.map(resultCard).join('');
        if (state.results.length === 0 && !state.loading && !state.error) empty = 'Search for movies to get started!';
      } else if (state.tab === 'unwatched') {
        const items = state.items.filter((m) => !m.watched);
        html = items.map(watchlistCard).join('');
        if (items.length === 0) empty = 'No movies in your watchlist yet!';
      } else {
        const items = state.items.filter((m) => m.watched);
        html = items.map(watchlistCard).join('');
        if (items.length === 0) empty = "You haven't watched any movies yet!";
      }
      $('content').innerHTML = html;
      $('empty').textContent = empty;
    }

    async function refreshWatchlist() {
      const body = await apiJSON('/api/watchlist?view=all');
      state.items = body.items;
      state.stats = body.stats;
      const ids = new Set(state.items.map((m) => m.imdb_id));
      state.results = state.results.map((r) => ({ ...r, in_watchlist: ids.has(r.imdb_id) }));
      render();
    }

    async function runSearch() {
      const q = $('query').value;
      if (!q.trim()) return;

      state.loading = true;
      state.error = '';
      render();
      try {
        const body = await apiJSON(`/api/search?q=${encodeURIComponent(q.trim())}`);
        state.results = body.results;
        state.tab = 'search';
      } catch (err) {
        state.error = err.message;
        state.results = [];
      } finally {
        state.loading = false;
        render();
      }
    }

    async function addMovie(imdbId) {
      const movie = state.results.find((r) => r.imdb_id === imdbId);
      if (!movie) return;
      await apiJSON('/api/watchlist', {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ imdb_id: movie.imdb_id, title: movie.title, year: movie.year, poster: movie.poster, kind: movie.kind }),
      });
      await refreshWatchlist();
    }

    function renderStars() {
      let out = '';
      for (let s = 1; s <= 5; s++) {
        out += `<button class="star-btn ${s <= state.rating ? 'on' : ''}" data-star="${s}">&#9733;</button>`;
      }
      $('review_stars').innerHTML = out;
    }

    async function openReview(imdbId) {
      const movie = await apiJSON(`/api/watchlist/${encodeURIComponent(imdbId)}`);
      state.selected = movie;
      state.rating = movie.rating || 0;
      $('review_title').textContent = movie.title;
      $('review_text').value = movie.review || '';
      renderStars();
      $('review_modal').classList.add('open');
    }

    function closeReview() {
      state.selected = null;
      state.rating = 0;
      $('review_text').value = '';
      $('review_modal').classList.remove('open');
    }

    async function saveReview() {
      if (!state.selected) return;
      await apiJSON(`/api/watchlist/${encodeURIComponent(state.selected.imdb_id)}/review`, {
        method: 'PUT',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ rating: state.rating, review: $('review_text').value }),
      });
      closeReview();
      await refreshWatchlist();
    }

    $('search').addEventListener('click', runSearch);
    $('query').addEventListener('keydown', (ev) => {
      if (ev.key !== 'Enter') return;
      ev.preventDefault();
      runSearch();
    });

    document.querySelectorAll('.tab').forEach((el) => {
      el.addEventListener('click', () => { state.tab = el.dataset.tab; render(); });
    });

    $('content').addEventListener('click', async (ev) => {
      const btn = ev.target.closest('button');
      if (!btn) return;
      try {
        if (btn.dataset.add) await addMovie(btn.dataset.add);
        if (btn.dataset.toggle) {
          await apiJSON(`/api/watchlist/${encodeURIComponent(btn.dataset.toggle)}/toggle-watched`, { method: 'POST' });
          await refreshWatchlist();
        }
        if (btn.dataset.review) await openReview(btn.dataset.review);
        if (btn.dataset.remove) {
          await apiJSON(`/api/watchlist/${encodeURIComponent(btn.dataset.remove)}`, { method: 'DELETE' });
          await refreshWatchlist();
        }
      } catch (err) {
        state.error = err.message;
        render();
      }
    });

    $('review_stars').addEventListener('click', (ev) => {
      const btn = ev.target.closest('button');
      if (!btn) return;
      state.rating = Number(btn.dataset.star);
      renderStars();
    });
    $('review_save').addEventListener('click', saveReview);
    $('review_cancel').addEventListener('click', closeReview);

    (async () => {
      const current = await apiJSON('/api/search/state');
      state.results = current.results;
      state.error = current.error ? current.error.message : '';
      await refreshWatchlist();
    })();
  </script>
</body>
</html>"""

    return HTMLResponse(content=html_doc)
