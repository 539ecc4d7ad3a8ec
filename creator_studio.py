#!/usr/bin/env python3
"""
Creator Studio: AI thumbnails and YouTube SEO copy

Generates YouTube thumbnails and SEO text (channel audits, titles,
descriptions, hashtags, tags) via Google Gemini, behind a simulated
guest / free / premium usage tier, with a small browser UI.

Usage:
    python creator_studio.py

Opens http://127.0.0.1:9300 in your browser.
"""

import asyncio
import base64
import binascii
import http.server
import io
import json
import os
import re
import sys
import threading
import urllib.parse
import webbrowser
from typing import Annotated, ClassVar, Literal, Optional, Union

from dotenv import load_dotenv

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(SCRIPT_DIR, ".env"))

from google import genai
from google.genai import types
from PIL import Image
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

# ----- Config -----

PORT = int(os.environ.get("PORT", 9300))
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
IMAGE_MODEL = os.environ.get("IMAGE_MODEL", "gemini-2.5-flash-image")
TEXT_MODEL = os.environ.get("TEXT_MODEL", "gemini-2.5-flash")
USAGE_FILE = os.environ.get("USAGE_FILE", os.path.join(SCRIPT_DIR, "usage.json"))

AspectRatio = Literal["16:9", "4:3", "1:1"]
LOGO_MIME_TYPES = ("image/png", "image/jpeg", "image/webp")
SEO_TASK_KINDS = ("audit", "title", "optimize", "description", "hashtags", "tags")

DEFAULT_PRIMARY_COLOR = "#007BFF"
DEFAULT_SECONDARY_COLOR = "#28A745"
NO_CONTENT_TEXT = "No content generated."

# None means unlimited
TIER_LIMITS = {"guest": 5, "free_user": 10, "premium": None}
TIER_ORDER = ["guest", "free_user", "premium"]

THUMBNAIL_PROMPT = """Professional YouTube thumbnail.
DETAILS: {description}
COLORS: Primary {primary_color}, Secondary {secondary_color}.
STYLE: Clean sans-serif font, glow effects, high contrast, photorealistic style, {aspect_ratio} composition."""

LOGO_INSTRUCTION = " Please incorporate the visual style or elements of the provided logo into the design naturally."

AUDIT_PROMPT = """Act as a YouTube SEO Expert. Analyze this channel link/info: {channel}.
Provide a comprehensive audit including an estimated SEO Score (0-100), Strengths, Weaknesses, and a list of specific Improvement Suggestions.
If a URL is provided, use Google Search to find public details about the channel."""

TITLE_PROMPT = """Generate 5 high-CTR, SEO-optimized YouTube video titles based on these focus keywords: "{keywords}".
Include estimated monthly search volume (Low/Medium/High) for the main keywords used. Format as a clean list."""

OPTIMIZE_PROMPT = """Optimize this existing video title: "{title}" using these focus keywords: "{keywords}".
Provide 3 improved variations that are punchy and click-worthy. Explain why they are better."""

DESCRIPTION_PROMPT = """Write a professional, SEO-optimized YouTube video description.
Topic: {topic}
Keywords to include: {keywords}
Structure it with an engaging Hook, Body, and Call to Action. Include timestamps placeholders."""

HASHTAGS_PROMPT = """Generate 15 viral and related hashtags for a YouTube video about: "{topic}".
Sort them by relevance."""

TAGS_PROMPT = """Generate 20 high search volume tags (comma-separated) for a YouTube video about: "{topic}".
Also provide a JSON formatted list of these tags with an AI-estimated global search volume for each (e.g., {{"tag": "example", "volume": "High"}})."""


class GenerationError(Exception):
    """The Gemini call was rejected, failed in transit, or returned unusable data."""


# ----- Request / Result Types -----


class LogoImage(BaseModel):
    """An uploaded logo, already converted to base64 by the host."""

    data: str
    mime_type: str

    @field_validator("mime_type")
    @classmethod
    def _known_mime_type(cls, value):
        if value not in LOGO_MIME_TYPES:
            raise ValueError(f"Unsupported logo type {value!r}, expected one of {', '.join(LOGO_MIME_TYPES)}")
        return value

    @field_validator("data")
    @classmethod
    def _decodable_image(cls, value):
        try:
            raw = base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Logo data is not valid base64: {e}") from e
        try:
            Image.open(io.BytesIO(raw)).verify()
        except Exception as e:
            raise ValueError(f"Logo data is not a readable image: {e}") from e
        return value

    @classmethod
    def from_bytes(cls, raw, mime_type):
        return cls(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)

    def raw_bytes(self):
        return base64.b64decode(self.data)


class ImageRequest(BaseModel):
    prompt: str
    logo: Optional[LogoImage] = None
    aspect_ratio: AspectRatio = "16:9"

    @field_validator("prompt")
    @classmethod
    def _non_empty(cls, value):
        if not value.strip():
            raise ValueError("Prompt must not be empty")
        return value


class ImageResult(BaseModel):
    image_url: Optional[str] = None
    text: Optional[str] = None


class ChannelAuditTask(BaseModel):
    kind: Literal["audit"] = "audit"
    url: str = ""
    text: str = ""

    uses_search: ClassVar[bool] = True

    def render_prompt(self):
        return AUDIT_PROMPT.format(channel=self.url or self.text)


class TitleTask(BaseModel):
    kind: Literal["title"] = "title"
    keywords: str

    uses_search: ClassVar[bool] = False

    def render_prompt(self):
        return TITLE_PROMPT.format(keywords=self.keywords)


class OptimizeTitleTask(BaseModel):
    kind: Literal["optimize"] = "optimize"
    title: str
    keywords: str

    uses_search: ClassVar[bool] = False

    def render_prompt(self):
        return OPTIMIZE_PROMPT.format(title=self.title, keywords=self.keywords)


class DescriptionTask(BaseModel):
    kind: Literal["description"] = "description"
    topic: str
    keywords: str

    uses_search: ClassVar[bool] = False

    def render_prompt(self):
        return DESCRIPTION_PROMPT.format(topic=self.topic, keywords=self.keywords)


class HashtagsTask(BaseModel):
    kind: Literal["hashtags"] = "hashtags"
    topic: str

    uses_search: ClassVar[bool] = False

    def render_prompt(self):
        return HASHTAGS_PROMPT.format(topic=self.topic)


class TagsTask(BaseModel):
    kind: Literal["tags"] = "tags"
    topic: str

    uses_search: ClassVar[bool] = False

    def render_prompt(self):
        return TAGS_PROMPT.format(topic=self.topic)


SeoTask = Annotated[
    Union[ChannelAuditTask, TitleTask, OptimizeTitleTask, DescriptionTask, HashtagsTask, TagsTask],
    Field(discriminator="kind"),
]
_seo_task_adapter = TypeAdapter(SeoTask)


def build_seo_task(kind, fields):
    """Build the task variant for `kind` from a loose mapping of form fields.
    Unrelated fields are dropped; missing required ones raise ValueError."""
    if kind not in SEO_TASK_KINDS:
        raise ValueError(f"Unknown task kind: {kind!r}")
    return _seo_task_adapter.validate_python({**fields, "kind": kind})


# ----- API Client -----


def get_client():
    if not GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY not set")
    return genai.Client(api_key=GEMINI_API_KEY)


# ----- Prompt Building -----


def build_thumbnail_prompt(description, primary_color=DEFAULT_PRIMARY_COLOR,
                           secondary_color=DEFAULT_SECONDARY_COLOR, aspect_ratio="16:9"):
    return THUMBNAIL_PROMPT.format(
        description=description,
        primary_color=primary_color,
        secondary_color=secondary_color,
        aspect_ratio=aspect_ratio,
    )


def build_image_contents(request):
    """Logo part first, then the text part carrying the logo instruction.
    Without a logo the prompt goes out alone and unchanged."""
    if request.logo is not None:
        return [
            types.Part.from_bytes(data=request.logo.raw_bytes(), mime_type=request.logo.mime_type),
            types.Part.from_text(text=request.prompt + LOGO_INSTRUCTION),
        ]
    return [types.Part.from_text(text=request.prompt)]


def build_seo_config(task):
    tools = [types.Tool(google_search=types.GoogleSearch())] if task.uses_search else None
    return types.GenerateContentConfig(tools=tools)


# ----- Response Normalization -----


def _data_url(data, mime_type):
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def normalize_image_response(response):
    """Fold response parts into an ImageResult.
    Later parts overwrite earlier ones for both fields."""
    image_url = None
    text = None
    if (response.candidates
            and response.candidates[0].content
            and response.candidates[0].content.parts):
        for part in response.candidates[0].content.parts:
            if part.inline_data and part.inline_data.data:
                if part.inline_data.mime_type:
                    image_url = _data_url(part.inline_data.data, part.inline_data.mime_type)
            elif part.text:
                text = part.text
    return ImageResult(image_url=image_url, text=text)


# ----- Generation -----


async def generate_thumbnail(client, prompt, logo=None, aspect_ratio="16:9"):
    """Generate one thumbnail. `prompt` may also be a prebuilt ImageRequest."""
    if isinstance(prompt, ImageRequest):
        request = prompt
    else:
        request = ImageRequest(prompt=prompt, logo=logo, aspect_ratio=aspect_ratio)

    try:
        response = await client.aio.models.generate_content(
            model=IMAGE_MODEL,
            contents=build_image_contents(request),
            config=types.GenerateContentConfig(
                response_modalities=["TEXT", "IMAGE"],
                image_config=types.ImageConfig(
                    aspect_ratio=request.aspect_ratio,
                ),
            ),
        )
        return normalize_image_response(response)
    except Exception as e:
        print(f"Error generating thumbnail: {e}")
        raise GenerationError(f"Thumbnail generation failed: {e}") from e


async def generate_seo_content(client, task, fields=None):
    """Generate SEO copy. `task` is a task model, or a task kind with `fields`."""
    if isinstance(task, str):
        task = build_seo_task(task, fields or {})

    try:
        response = await client.aio.models.generate_content(
            model=TEXT_MODEL,
            contents=task.render_prompt(),
            config=build_seo_config(task),
        )
        text = response.text
    except Exception as e:
        print(f"Error generating SEO content ({task.kind}): {e}")
        raise GenerationError(f"SEO content generation failed: {e}") from e
    return text or NO_CONTENT_TEXT


# ----- Usage Policy -----


class UsagePolicy:
    """Simulated tier quota, persisted to a small JSON file."""

    def __init__(self, path):
        self.path = path
        self._lock = threading.Lock()
        self.tier = "guest"
        self.count = 0
        self._load()

    def _load(self):
        if not os.path.isfile(self.path):
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Ignoring unreadable usage file {self.path}: {e}")
            return
        if not isinstance(data, dict):
            print(f"Ignoring usage file {self.path}: expected a JSON object")
            return
        if data.get("tier") in TIER_LIMITS:
            self.tier = data["tier"]
        if isinstance(data.get("count"), int) and data["count"] >= 0:
            self.count = data["count"]

    def _save(self):
        with open(self.path, "w") as f:
            json.dump({"tier": self.tier, "count": self.count}, f, indent=2)

    @property
    def limit(self):
        return TIER_LIMITS[self.tier]

    def check_and_consume(self):
        """Spend one use if the tier allows it. Returns False at the limit."""
        with self._lock:
            if self.limit is not None and self.count >= self.limit:
                return False
            self.count += 1
            self._save()
            return True

    def cycle_tier(self):
        with self._lock:
            self.tier = TIER_ORDER[(TIER_ORDER.index(self.tier) + 1) % len(TIER_ORDER)]
            self._save()
            return self.tier

    def snapshot(self):
        with self._lock:
            return {"tier": self.tier, "count": self.count, "limit": self.limit}


# ----- Multipart Parser -----

DISPOSITION_NAME = re.compile(r';\s*name="([^"]*)"')
DISPOSITION_FILENAME = re.compile(r';\s*filename="([^"]*)"')


def parse_multipart(headers, body):
    """Parse multipart/form-data into fields and files.
    Each file is a dict with filename, content_type and data."""
    content_type = headers.get("Content-Type", "")
    if "boundary=" not in content_type:
        return {}, {}

    boundary = content_type.split("boundary=")[1].split(";")[0].strip()
    if boundary.startswith('"') and boundary.endswith('"'):
        boundary = boundary[1:-1]
    boundary = boundary.encode()

    fields = {}
    files = {}

    for part in body.split(b"--" + boundary):
        if part.startswith(b"\r\n"):
            part = part[2:]
        if part.endswith(b"\r\n"):
            part = part[:-2]
        if not part or part.startswith(b"--"):
            continue

        if b"\r\n\r\n" in part:
            header_block, content = part.split(b"\r\n\r\n", 1)
        elif b"\n\n" in part:
            header_block, content = part.split(b"\n\n", 1)
        else:
            continue

        name = None
        filename = None
        part_type = "application/octet-stream"
        for line in header_block.decode("utf-8", errors="replace").splitlines():
            line = line.strip()
            lower = line.lower()
            if lower.startswith("content-disposition:"):
                match = DISPOSITION_NAME.search(line)
                if match:
                    name = match.group(1)
                match = DISPOSITION_FILENAME.search(line)
                if match:
                    filename = match.group(1)
            elif lower.startswith("content-type:"):
                part_type = line.split(":", 1)[1].strip()

        if name is None:
            continue

        if filename:
            files.setdefault(name, []).append({
                "filename": filename,
                "content_type": part_type,
                "data": content,
            })
        elif filename is None:
            fields[name] = content.decode("utf-8", errors="replace")

    return fields, files


def _error_message(e):
    if isinstance(e, ValidationError):
        return e.errors()[0]["msg"]
    return str(e)[:200]


# ----- HTML UI -----

HTML = r"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Creator Studio: Thumbnails &amp; SEO</title>
<style>
  * { box-sizing: border-box; margin: 0; padding: 0; }
  body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
    background: #0f172a; color: #e2e8f0; padding: 24px; min-height: 100vh;
  }
  nav { display: flex; align-items: center; justify-content: space-between; margin-bottom: 24px; }
  h1 { color: #fff; font-size: 26px; }
  .tabs { display: flex; gap: 8px; }
  .card {
    background: #1e293b; border-radius: 12px; padding: 24px;
    margin-bottom: 16px; border: 1px solid #334155;
  }
  .hidden { display: none; }
  label.section {
    display: block; font-size: 13px; color: #94a3b8; margin-bottom: 6px;
    font-weight: 600; text-transform: uppercase; letter-spacing: 0.5px;
  }
  input[type="text"], textarea, select {
    width: 100%; padding: 10px 14px; border-radius: 8px;
    border: 1px solid #334155; background: #0f172a; color: #fff;
    font-size: 15px; outline: none; font-family: inherit;
  }
  input[type="color"] { width: 60px; height: 36px; border: none; background: none; }
  input:focus, textarea:focus, select:focus { border-color: #ef4444; }
  .mb { margin-bottom: 16px; }
  .row { display: flex; gap: 16px; }
  .btn {
    padding: 10px 24px; border-radius: 8px; border: none;
    font-size: 15px; font-weight: 600; cursor: pointer;
  }
  .btn-primary { background: #ef4444; color: #fff; }
  .btn-primary:disabled { background: #555; cursor: not-allowed; }
  .btn-secondary { background: #334155; color: #fff; }
  .btn-secondary.active { background: #ef4444; }
  .btn-sm { padding: 6px 14px; font-size: 13px; }
  .usage { font-size: 12px; color: #94a3b8; margin-right: 12px; }
  .result img { max-width: 100%; border-radius: 8px; margin-top: 12px; }
  .result pre {
    white-space: pre-wrap; background: #0f172a; border-radius: 8px; padding: 12px;
    font-size: 14px; margin-top: 12px; max-height: 480px; overflow-y: auto;
  }
  .error { color: #f87171; margin-top: 12px; }
  .paywall { border-color: #ef4444; text-align: center; }
</style>
</head>
<body>
<nav>
  <h1>Creator Studio</h1>
  <div class="tabs">
    <button class="btn btn-secondary btn-sm active" id="navThumb" onclick="showView('thumbnail')">Thumbnail Gen</button>
    <button class="btn btn-secondary btn-sm" id="navTools" onclick="showView('tools')">SEO & Audit Tools</button>
  </div>
  <div>
    <span class="usage" id="usage"></span>
    <button class="btn btn-secondary btn-sm" id="tierBtn" onclick="cycleTier()">Simulate</button>
  </div>
</nav>

<div class="card paywall hidden" id="paywall">
  <h2>You've reached your free limit!</h2>
  <p class="mb">Switch tier with the Simulate button to keep generating.</p>
</div>

<div id="thumbnailView">
  <div class="card">
    <div class="mb">
      <label class="section">Thumbnail description</label>
      <textarea id="description" rows="3">Channel Intro: Bold white text 'EasyTech Tutorial'. Smiling business owner at laptop with dashboard and rising graph icons.</textarea>
    </div>
    <div class="row mb">
      <div><label class="section">Primary</label><input type="color" id="primaryColor" value="#007BFF"></div>
      <div><label class="section">Secondary</label><input type="color" id="secondaryColor" value="#28A745"></div>
      <div style="flex:1">
        <label class="section">Aspect ratio</label>
        <select id="aspectRatio">
          <option value="16:9">16:9 (YouTube)</option>
          <option value="4:3">4:3</option>
          <option value="1:1">1:1</option>
        </select>
      </div>
    </div>
    <div class="mb">
      <label class="section">Logo (optional)</label>
      <input type="file" id="logo" accept="image/png,image/jpeg,image/webp">
    </div>
    <button class="btn btn-primary" id="thumbBtn" onclick="generateThumbnail()">Generate Thumbnail</button>
    <div class="result" id="thumbResult"></div>
  </div>
</div>

<div id="toolsView" class="hidden">
  <div class="card">
    <div class="tabs mb" id="taskTabs"></div>
    <div class="mb" data-for="audit">
      <label class="section">YouTube channel link or name</label>
      <input type="text" id="url" placeholder="https://www.youtube.com/@ChannelName">
    </div>
    <div class="mb" data-for="optimize">
      <label class="section">Existing video title</label>
      <input type="text" id="title" placeholder="My video title...">
    </div>
    <div class="mb" data-for="title optimize description">
      <label class="section">Focus keywords</label>
      <input type="text" id="keywords" placeholder="e.g. wordpress tutorial, seo tips">
    </div>
    <div class="mb" data-for="description hashtags tags">
      <label class="section">Video topic</label>
      <input type="text" id="topic" placeholder="e.g. home gardening tips">
    </div>
    <button class="btn btn-primary" id="seoBtn" onclick="generateSeo()">Generate</button>
    <button class="btn btn-secondary hidden" id="copyBtn" onclick="copyResult()">Copy</button>
    <div class="result" id="seoResult"></div>
  </div>
</div>

<script>
const TASKS = [
  ['audit', 'Channel Audit'], ['title', 'Gen Title'], ['optimize', 'Optimize Title'],
  ['description', 'Description'], ['hashtags', 'Hashtags'], ['tags', 'Tags'],
];
let activeTask = 'audit';
let seoText = '';

function escHtml(s) {
  const d = document.createElement('div');
  d.textContent = s;
  return d.innerHTML;
}

function imageExtension(dataUrl) {
  const match = dataUrl.match(/^data:image\/([a-z0-9.+-]+);/i);
  const subtype = match ? match[1].toLowerCase() : 'png';
  return subtype === 'jpeg' ? 'jpg' : subtype;
}

function showView(view) {
  document.getElementById('thumbnailView').classList.toggle('hidden', view !== 'thumbnail');
  document.getElementById('toolsView').classList.toggle('hidden', view !== 'tools');
  document.getElementById('navThumb').classList.toggle('active', view === 'thumbnail');
  document.getElementById('navTools').classList.toggle('active', view === 'tools');
}

function renderTasks() {
  const tabs = document.getElementById('taskTabs');
  tabs.innerHTML = '';
  TASKS.forEach(([id, label]) => {
    const b = document.createElement('button');
    b.className = 'btn btn-secondary btn-sm' + (id === activeTask ? ' active' : '');
    b.textContent = label;
    b.onclick = () => { activeTask = id; seoText = ''; renderTasks(); renderSeo(''); };
    tabs.appendChild(b);
  });
  document.querySelectorAll('[data-for]').forEach(el => {
    el.classList.toggle('hidden', !el.dataset.for.split(' ').includes(activeTask));
  });
}

function renderUsage(u) {
  const limit = u.limit === null ? 'Unlimited Access' : u.count + ' / ' + u.limit + ' Uses';
  document.getElementById('usage').textContent = limit;
  document.getElementById('tierBtn').textContent = 'Simulate: ' + u.tier.toUpperCase();
}

function refreshUsage() {
  fetch('/usage').then(r => r.json()).then(renderUsage);
}

function cycleTier() {
  fetch('/login', { method: 'POST' }).then(r => r.json()).then(u => {
    renderUsage(u);
    document.getElementById('paywall').classList.add('hidden');
  });
}

function handleError(data, target) {
  if (data.paywall) document.getElementById('paywall').classList.remove('hidden');
  target.innerHTML = '<div class="error">' + escHtml(data.error) + '</div>';
}

async function generateThumbnail() {
  const description = document.getElementById('description').value.trim();
  if (!description) return;
  const btn = document.getElementById('thumbBtn');
  const out = document.getElementById('thumbResult');
  btn.disabled = true;
  out.innerHTML = 'Generating...';
  try {
    const fd = new FormData();
    fd.append('description', description);
    fd.append('primary_color', document.getElementById('primaryColor').value);
    fd.append('secondary_color', document.getElementById('secondaryColor').value);
    fd.append('aspect_ratio', document.getElementById('aspectRatio').value);
    const logo = document.getElementById('logo').files[0];
    if (logo) fd.append('logo', logo);

    const resp = await fetch('/generate_thumbnail', { method: 'POST', body: fd });
    const data = await resp.json();
    if (data.error) { handleError(data, out); return; }

    let html = '';
    if (data.image_url) {
      html += '<img src="' + data.image_url + '">';
      html += '<div><a class="btn btn-secondary btn-sm" download="thumbnail-' + Date.now() + '.' + imageExtension(data.image_url) + '" href="' + data.image_url + '">Download</a> ';
      html += '<button class="btn btn-secondary btn-sm" onclick="generateThumbnail()">Regenerate</button></div>';
    } else if (data.text) {
      html += '<pre>' + escHtml(data.text) + '</pre>';
    } else {
      html += '<div class="error">No image was returned.</div>';
    }
    out.innerHTML = html;
  } catch(e) {
    out.innerHTML = '<div class="error">' + escHtml(String(e)) + '</div>';
  } finally {
    btn.disabled = false;
    refreshUsage();
  }
}

function renderSeo(text) {
  seoText = text;
  document.getElementById('seoResult').innerHTML = text ? '<pre>' + escHtml(text) + '</pre>' : '';
  document.getElementById('copyBtn').classList.toggle('hidden', !text);
}

async function generateSeo() {
  const btn = document.getElementById('seoBtn');
  const out = document.getElementById('seoResult');
  btn.disabled = true;
  renderSeo('');
  out.innerHTML = 'Generating...';
  try {
    const body = new URLSearchParams({ task: activeTask });
    ['url', 'title', 'keywords', 'topic'].forEach(id => body.append(id, document.getElementById(id).value));
    const resp = await fetch('/generate_seo', { method: 'POST', body: body });
    const data = await resp.json();
    if (data.error) { handleError(data, out); return; }
    renderSeo(data.content);
  } catch(e) {
    out.innerHTML = '<div class="error">' + escHtml(String(e)) + '</div>';
  } finally {
    btn.disabled = false;
    refreshUsage();
  }
}

function copyResult() {
  navigator.clipboard.writeText(seoText).then(() => alert('Copied to clipboard!'));
}

renderTasks();
refreshUsage();
</script>
</body>
</html>"""

# ----- HTTP Server -----


class Handler(http.server.BaseHTTPRequestHandler):
    usage_policy = None

    def log_message(self, fmt, *args):
        pass

    def do_GET(self):
        path = urllib.parse.urlparse(self.path).path

        if path == "/":
            self._serve_html()
        elif path == "/usage":
            self._json_response(self.usage_policy.snapshot())
        else:
            self.send_error(404)

    def do_POST(self):
        path = urllib.parse.urlparse(self.path).path

        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)

        if path == "/login":
            self.usage_policy.cycle_tier()
            self._json_response(self.usage_policy.snapshot())
        elif path == "/generate_thumbnail":
            self._handle_generate_thumbnail(body)
        elif path == "/generate_seo":
            self._handle_generate_seo(body)
        else:
            self.send_error(404)

    def _serve_html(self):
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(HTML.encode("utf-8"))

    def _json_response(self, data):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode("utf-8"))

    def _read_form(self, body):
        content_type = self.headers.get("Content-Type", "")
        if "multipart/form-data" in content_type:
            return parse_multipart(self.headers, body)
        return dict(urllib.parse.parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True)), {}

    def _paywall_response(self):
        self._json_response({
            "error": "Usage limit reached for the current tier.",
            "paywall": True,
        })

    def _handle_generate_thumbnail(self, body):
        fields, files = self._read_form(body)

        description = fields.get("description", "").strip()
        if not description:
            self._json_response({"error": "Thumbnail description is required"})
            return

        aspect_ratio = fields.get("aspect_ratio", "16:9")
        try:
            logo = None
            uploads = files.get("logo", [])
            if uploads and uploads[0]["data"]:
                logo = LogoImage.from_bytes(uploads[0]["data"], uploads[0]["content_type"])
            request = ImageRequest(
                prompt=build_thumbnail_prompt(
                    description,
                    fields.get("primary_color") or DEFAULT_PRIMARY_COLOR,
                    fields.get("secondary_color") or DEFAULT_SECONDARY_COLOR,
                    aspect_ratio,
                ),
                logo=logo,
                aspect_ratio=aspect_ratio,
            )
        except ValueError as e:
            self._json_response({"error": _error_message(e)})
            return

        if not self.usage_policy.check_and_consume():
            self._paywall_response()
            return

        try:
            client = get_client()
            result = asyncio.run(generate_thumbnail(client, request))
        except (GenerationError, RuntimeError) as e:
            self._json_response({"error": _error_message(e)})
            return
        self._json_response({"ok": True, "image_url": result.image_url, "text": result.text})

    def _handle_generate_seo(self, body):
        fields, _ = self._read_form(body)

        try:
            task = build_seo_task(fields.pop("task", ""), fields)
        except ValueError as e:
            self._json_response({"error": _error_message(e)})
            return

        if not self.usage_policy.check_and_consume():
            self._paywall_response()
            return

        try:
            client = get_client()
            content = asyncio.run(generate_seo_content(client, task))
        except (GenerationError, RuntimeError) as e:
            self._json_response({"error": _error_message(e)})
            return
        self._json_response({"ok": True, "content": content})


def make_server(usage_policy, host="0.0.0.0", port=PORT):
    handler = type("StudioHandler", (Handler,), {"usage_policy": usage_policy})
    server = http.server.ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


# ----- Main -----


def main():
    if not GEMINI_API_KEY:
        print("ERROR: GEMINI_API_KEY not set.")
        print("Add it to .env file or export GEMINI_API_KEY='your-key'")
        sys.exit(1)

    policy = UsagePolicy(USAGE_FILE)
    usage = policy.snapshot()
    print("Creator Studio")
    print(f"Image Model: {IMAGE_MODEL}")
    print(f"Text Model: {TEXT_MODEL}")
    print(f"Usage: {usage['count']} uses as {usage['tier']} ({USAGE_FILE})")
    print(f"Server: http://0.0.0.0:{PORT}")
    print()

    server = make_server(policy)
    if os.environ.get("NO_BROWSER") != "1":
        webbrowser.open(f"http://127.0.0.1:{PORT}")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
        server.shutdown()


if __name__ == "__main__":
    main()
