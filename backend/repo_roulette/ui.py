from html import escape
from string import Template
from typing import Iterable

PAGE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Repo Roulette</title>
  <style>
    :root { --danger: #c0392b; --muted: #666; }
    body { font-family: system-ui, sans-serif; max-width: 42rem; margin: 2rem auto; padding: 0 1rem; }
    .controls { display: flex; gap: .5rem; }
    .hidden { display: none; }
    #status { min-height: 1.5em; margin: 1rem 0; color: var(--muted); }
    #card { border: 1px solid #ddd; border-radius: 8px; padding: 1rem; }
    .stats, .chips { display: flex; gap: 1rem; }
  </style>
</head>
<body>
  <h1>Repo Roulette</h1>
  <div class="controls">
    <select id="languageSelect">$options</select>
    <button id="fetchBtn">Find repository</button>
    <button id="refreshBtn" class="hidden">Refresh</button>
  </div>
  <div id="status"></div>
  <article id="card" class="hidden">
    <h2><a id="repoLink" href="#" target="_blank" rel="noopener"><span id="repoName"></span></a></h2>
    <p id="repoDesc"></p>
    <div class="stats">
      <span>&#9733; <span id="stars">0</span></span>
      <span>Forks <span id="forks">0</span></span>
      <span>Issues <span id="issues">0</span></span>
    </div>
    <div class="chips"><span id="languageChip"></span><span id="ownerChip"></span></div>
  </article>
  <script>
    const $$ = (id) => document.getElementById(id);

    function apply(view) {
      const state = view.state;
      $$("status").textContent = state.message || "";
      $$("status").style.color = state.is_error ? "var(--danger)" : "";
      for (const id of ["languageSelect", "fetchBtn", "refreshBtn"]) {
        $$(id).disabled = !view.controls_enabled;
      }
      $$("card").classList.toggle("hidden", !view.show_card);
      $$("refreshBtn").classList.toggle("hidden", !view.show_refresh);
      const d = state.display;
      if (!d) return;
      $$("repoName").textContent = d.name;
      $$("repoLink").href = d.url;
      $$("repoDesc").textContent = d.description;
      $$("stars").textContent = d.stars;
      $$("forks").textContent = d.forks;
      $$("issues").textContent = d.issues;
      $$("languageChip").textContent = d.language_label;
      $$("ownerChip").textContent = d.owner_label;
    }

    function run(mode) {
      const language = $$("languageSelect").value;
      if (!language) return;
      const params = new URLSearchParams({ language, mode });
      const source = new EventSource("$stream_url?" + params);
      source.addEventListener("state", (e) => apply(JSON.parse(e.data)));
      source.addEventListener("done", () => source.close());
      // a stream that ends without "done" leaves the page on whatever the server now holds
      source.addEventListener("superseded", () => resync(source));
      source.addEventListener("failed", (e) => resync(source, JSON.parse(e.data).detail));
      source.onerror = () => resync(source);
    }

    async function resync(source, detail) {
      source.close();
      try {
        const resp = await fetch("$state_url", { credentials: "same-origin" });
        apply(await resp.json());
      } catch (err) {
        for (const id of ["languageSelect", "fetchBtn", "refreshBtn"]) {
          $$(id).disabled = false;
        }
      }
      if (detail) {
        $$("status").textContent = "Error: " + detail;
        $$("status").style.color = "var(--danger)";
      }
    }

    $$("fetchBtn").addEventListener("click", () => run("fetch"));
    $$("refreshBtn").addEventListener("click", () => run("refresh"));
  </script>
</body>
</html>
"""
)


def render_options(languages: Iterable[str]) -> str:
    return "".join(
        f'<option value="{escape(lang)}">{escape(lang)}</option>' for lang in languages
    )


def render_index(
    languages: Iterable[str],
    stream_url: str = "/api/fetch/stream",
    state_url: str = "/api/state",
) -> str:
    return PAGE.substitute(
        options=render_options(languages), stream_url=stream_url, state_url=state_url
    )
