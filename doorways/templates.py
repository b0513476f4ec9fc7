INDEX_HTML = r"""<!doctype html>
<html lang="en" data-bs-theme="dark">
<head>
  <meta charset="utf-8">
  <title>{{ window_title }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css" rel="stylesheet">
  <style>
    body { background: {% if edit_mode %}#330033{% else %}#1a3350{% endif %}; }
    .tile { position: relative; width: 200px; height: 200px; cursor: pointer; display: flex; align-items: center; justify-content: center; }
    .tile img { max-width: 200px; max-height: 200px; border-radius: .25rem; }
    .tile .shade { position: absolute; inset: 0; background: rgba(0,0,0,.4); display: none; }
    .tile.starting .shade { display: block; }
    .tile .dot { position: absolute; left: 6px; bottom: 6px; width: 20px; height: 20px; border-radius: 50%; display: none; }
    .tile .badge { position: absolute; right: 4px; bottom: 4px; }
    .tile.starting .dot, .tile.starting .badge { display: none; }
    .overlay-off .dot, .overlay-off .badge { display: none !important; }
    .kids-yes { outline: 2px solid #00ff00; } .kids-no { outline: 2px solid #ff0000; } .kids-unset { outline: 2px solid #808080; }
  </style>
</head>
<body class="{% if not show_overlay %}overlay-off{% endif %}">
<nav class="navbar navbar-expand-lg bg-body-tertiary px-3">
  <span class="navbar-brand">{{ window_title }}</span>
  <div class="ms-auto d-flex gap-2">
    {% if allow_filter %}
    {% for f in filters %}
      <a class="btn btn-sm {% if f == current_filter %}btn-light{% else %}btn-outline-light{% endif %}"
         href="{{ url_for('doorways.index', filter=f.value, installed=('any' if installed is none else installed|lower), edit=('1' if edit_mode else none)) }}">{{ f.label }}</a>
    {% endfor %}
    <a class="btn btn-outline-info btn-sm"
       href="{{ url_for('doorways.index', filter=current_filter.value, installed=('true' if installed is none else ('false' if installed else 'any')), edit=('1' if edit_mode else none)) }}">
       {{ 'Any' if installed is none else ('Installed' if installed else 'Not installed') }}
    </a>
    {% endif %}
    <form method="post" action="{{ url_for('doorways.toggle_filter_lock') }}">
      <button class="btn btn-outline-secondary btn-sm" type="submit" title="Ctrl+F">{{ 'Lock filter' if allow_filter else 'Unlock filter' }}</button>
    </form>
    <a class="btn btn-outline-warning btn-sm"
       href="{{ url_for('doorways.index', filter=current_filter.value, installed=('any' if installed is none else installed|lower), edit=(none if edit_mode else '1')) }}">
       {{ 'Done' if edit_mode else 'Edit' }}
    </a>
    <form method="post" action="{{ url_for('doorways.settings_post') }}">
      <input type="hidden" name="show_overlay" value="{{ '0' if show_overlay else '1' }}">
      <button class="btn btn-outline-light btn-sm" type="submit">Overlay</button>
    </form>
  </div>
</nav>

<div class="container-fluid py-3">
  {% if not tiles %}
    <div class="text-center py-5">
      <h4>No games to show.</h4>
      <p class="text-secondary">Run <code>doorways --refresh</code> to discover installed games, or change the filter.</p>
    </div>
  {% else %}
  <div class="d-flex flex-wrap gap-3">
    {% for i, g in tiles %}
      <div>
        <div class="tile {% if edit_mode %}kids-{{ 'unset' if g.kids is none else ('yes' if g.kids else 'no') }}{% endif %}"
             data-index="{{ i }}" title="{{ g.title }}">
          <img src="{{ url_for('doorways.tile', index=i) }}" alt="{{ g.title }}" loading="lazy">
          <div class="shade"></div>
          <div class="dot"></div>
          <span class="badge text-bg-dark">{{ g.launcher.value }}</span>
        </div>
        {% if edit_mode %}
          <form class="d-flex gap-1 mt-1" method="post" action="{{ url_for('doorways.set_kids', index=i) }}">
            <button class="btn btn-success btn-sm" name="kids" value="yes">K</button>
            <button class="btn btn-danger btn-sm" name="kids" value="no">D</button>
            <button class="btn btn-secondary btn-sm" name="kids" value="unset">U</button>
          </form>
        {% endif %}
      </div>
    {% endfor %}
  </div>
  {% endif %}
</div>

<script>
  const statusUrl = "{{ url_for('doorways.status') }}";
  const editMode = {{ 'true' if edit_mode else 'false' }};
  const filterLockUrl = "{{ url_for('doorways.toggle_filter_lock') }}";

  function paint(statuses) {
    document.querySelectorAll(".tile").forEach(t => {
      const st = statuses[t.dataset.index];
      const dot = t.querySelector(".dot");
      t.classList.toggle("starting", !!st && st.status === "starting");
      if (!st) { dot.style.display = "none"; return; }
      dot.style.background = st.color;
      dot.style.display = st.status === "starting" ? "none" : "block";
      t.title = st.reason || (st.code !== undefined ? "exit " + st.code : t.getAttribute("title"));
    });
  }

  async function refresh() {
    try {
      const r = await fetch(statusUrl, {headers: {"Accept": "application/json"}});
      paint(await r.json());
    } catch (e) { /* server gone; keep last state */ }
  }

  document.querySelectorAll(".tile").forEach(t => t.addEventListener("click", async () => {
    if (editMode) return;
    await fetch("/activate/" + t.dataset.index, {method: "POST", headers: {"Accept": "application/json"}});
    refresh();
  }));

  document.addEventListener("keydown", async (ev) => {
    if (!(ev.ctrlKey && ev.key.toLowerCase() === "f")) return;
    ev.preventDefault();
    await fetch(filterLockUrl, {method: "POST", headers: {"Accept": "application/json"}});
    location.href = location.pathname;
  });

  paint({{ statuses|tojson }});
  setInterval(refresh, 1000);
</script>
</body>
</html>
"""
