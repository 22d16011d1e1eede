from __future__ import annotations

import pytest

SEARCH_PAGE = """
<html><body>
<div id="content">
  <div class="monologue user-7">
    <div class="signature">
      <div class="tiny-signature">
        <div class="username"><a href="/users/7/statebot" title="statebot">statebot</a></div>
      </div>
    </div>
    <div class="messages">
      <div class="message" id="message-100">
        <a name="100" href="/transcript/42?m=100#100"><span class="action-link"></span></a>
        <div class="content">
          <div class="onebox ob-image"><a rel="nofollow noopener noreferrer" href="https://bot.glitch.me/?_?%7B%22keepAlive%22%3Atrue%2C%22t%22%3A2000%7D"><img src="https://bot.glitch.me/?_?%7B%7D" class="user-image" alt="user image"></a></div>
        </div>
      </div>
      <div class="message" id="message-90">
        <a name="90" href="/transcript/42?m=90#90"><span class="action-link"></span></a>
        <a class="reply-info" href="/transcript/message/80#80"> </a>
        <div class="content">  hello   world  </div>
      </div>
    </div>
  </div>
  <div class="monologue user-9">
    <div class="signature">
      <div class="username"><a href="/users/9/someone" title="someone">someone</a></div>
    </div>
    <div class="messages">
      <div class="message" id="message-85">
        <a name="85" href="/transcript/43?m=85#85"><span class="action-link"></span></a>
        <div class="content">in another room</div>
      </div>
    </div>
  </div>
</div>
</body></html>
"""

TRANSCRIPT_PAGE = """
<html><body>
<div id="transcript">
  <div class="monologue user-9">
    <div class="signature"><div class="username"><a href="/users/9/someone">someone</a></div></div>
    <div class="messages">
      <div class="message" id="message-200">
        <a name="200" href="/transcript/message/200#200"><span class="action-link"></span></a>
        <div class="content">first</div>
      </div>
    </div>
  </div>
  <div class="monologue">
    <div class="messages">
      <div class="message">
        <div class="content">no id, no author</div>
      </div>
    </div>
  </div>
</div>
</body></html>
"""


@pytest.fixture
def search_page() -> str:
    return SEARCH_PAGE


@pytest.fixture
def transcript_page() -> str:
    return TRANSCRIPT_PAGE
