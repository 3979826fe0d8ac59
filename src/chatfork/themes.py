"""Color scheme for Chatfork, based on the Tokyo Night palette."""

from textual.theme import Theme

# Tokyo Night Night variant
# Source: https://github.com/folke/tokyonight.nvim/blob/main/extras/ghostty/tokyonight_night
PALETTE_0 = "#15161e"  # Darker surface
PALETTE_1 = "#f7768e"  # Red
PALETTE_2 = "#9ece6a"  # Green
PALETTE_3 = "#e0af68"  # Yellow
PALETTE_4 = "#7aa2f7"  # Blue
PALETTE_5 = "#bb9af7"  # Purple/Magenta
PALETTE_6 = "#7dcfff"  # Cyan
PALETTE_7 = "#565f89"  # Comment grey
PALETTE_8 = "#414868"  # Panel/border

BACKGROUND = "#1a1b26"
FOREGROUND = "#c0caf5"

# Status line styles
ERROR = PALETTE_1
WARNING = PALETTE_3
SUCCESS = PALETTE_2
MUTED = PALETTE_7

# Branch indicator
TANGENT_MARK = "↯"
TANGENT_STYLE = f"bold {PALETTE_3}"

CHATFORK_THEME = Theme(
    name="chatfork",
    primary=PALETTE_4,
    secondary=PALETTE_5,
    accent=PALETTE_6,
    foreground=FOREGROUND,
    background=BACKGROUND,
    surface=PALETTE_0,
    panel=PALETTE_8,
    success=PALETTE_2,
    warning=PALETTE_3,
    error=PALETTE_1,
    dark=True,
)
