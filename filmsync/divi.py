"""Divi builder shortcode components for a film page.

Each component holds only the data and style it needs and renders to a
shortcode string. ``TemplateComposer`` concatenates components in the order
they were added.
"""
import html
from dataclasses import dataclass, field, fields
from typing import Protocol

# Palette
COLOR_PRIMARY = "#24A68E"
COLOR_SECONDARY = "#E6F543"
COLOR_DARK = "#31045C"
COLOR_YELLOW = "#FFFC4F"
COLOR_CORAL = "#FF9582"
COLOR_LIGHT_GREEN = "#91F580"
COLOR_WHITE = "#ffffff"
COLOR_BODY = "#333333"
COLOR_PINK = "#FFDBFF"

URL_FACEBOOK = "https://www.facebook.com/excentrico.fest/"
URL_INSTAGRAM = "https://www.instagram.com/excentrico.fest/?hl=es"
URL_TWITTER = "https://twitter.com/excentricofest"
EMAIL_CONTACT = "hola@excentricofest.com"

BUILDER_VERSION = "4.27.4"

FONT_BOLD = "|600|||||||"
FONT_BOLD_CAPS = "|600||on|||||"
FONT_EXTRA_BOLD = "|800|||||||"

PRESET_DEFAULT = '_module_preset="default"'
GLOBAL_COLORS_INFO = 'global_colors_info="{}"'
BOX_SHADOW_PRESET3 = 'box_shadow_style="preset3"'
CUSTOM_BUTTON_ON = 'custom_button="on"'
BACKGROUND_COLOR_ON = 'background_enable_color="on"'

PADDING_STANDARD = "3%|3%|3.6%|3%|false|false"
PADDING_DIRECTOR = "3.3%|3%|3.6%|3%|false|false"
PADDING_NOTES = "1%||1%|2%|false|false"
MARGIN_STANDARD = "6%||||false|false"

# Footer call-to-action opens the submissions popup page
FOOTER_BUTTON_URL = (
    "@ET-DC@eyJkeW5hbWljIjp0cnVlLCJjb250ZW50IjoicG9zdF9saW5rX3VybF9wYWdlIiwic2V0dGluZ3Mi"
    "OnsicG9zdF9pZCI6IjEwNDI0In19@"
)

CREDIT_LABELS = (
    ("production", "Producción"),
    ("script", "Guión"),
    ("photography", "Cámara - Foto"),
    ("art_design", "Arte - Diseño"),
    ("sound_music", "Sonido - Música"),
    ("editing", "Edición"),
    ("cast", "Intérpretes (especificar pronombres para subtítulos)"),
)


def escape(text: str) -> str:
    return html.escape(text or "")


class Component(Protocol):
    def render(self) -> str:
        ...


# === Style presets ===


def _from_flat(cls, data):
    """Build a flat style dataclass, ignoring unknown keys."""
    data = data if isinstance(data, dict) else {}
    names = {f.name for f in fields(cls)}
    return cls(**{k: str(v) for k, v in data.items() if k in names and v is not None})


@dataclass
class HeaderStyle:
    title_text_color: str = ""
    subhead_text_color: str = ""
    background_enable_color: str = ""


@dataclass
class MenuStyle:
    menu_id: str = ""
    active_link_color: str = ""
    menu_text_color: str = ""
    background_color: str = ""
    background_image: str = ""


@dataclass
class SectionStyle:
    background_color: str = ""
    background_color_gradient_stops: str = ""
    background_color_gradient_start: str = ""
    background_color_gradient_end: str = ""


@dataclass
class TextStyle:
    header_4_text_color: str = ""
    box_shadow_color: str = ""


@dataclass
class NotesStyle:
    disabled_on: str = ""
    color: str = ""
    background_color: str = ""
    box_shadow_color: str = ""


@dataclass
class FooterSectionStyle:
    background_image: str = ""
    background_position: str = ""
    global_module: str = ""


@dataclass
class FooterButtonStyle:
    box_shadow_color: str = ""
    button_icon_color: str = ""
    button_border_color: str = ""
    button_text_color: str = ""


@dataclass
class FooterStyle:
    section: FooterSectionStyle = field(default_factory=FooterSectionStyle)
    button: FooterButtonStyle = field(default_factory=FooterButtonStyle)


@dataclass
class TemplateStyle:
    """Per-edition colours and assets, read from templates/<year>.json."""

    header: HeaderStyle = field(default_factory=HeaderStyle)
    menu: MenuStyle = field(default_factory=MenuStyle)
    contenido: SectionStyle = field(default_factory=SectionStyle)
    texto: TextStyle = field(default_factory=TextStyle)
    ndc: NotesStyle = field(default_factory=NotesStyle)
    footer: FooterStyle = field(default_factory=FooterStyle)

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateStyle":
        footer = data.get("footer") or {}
        ndc = data.get("ndc") or {}
        return cls(
            header=_from_flat(HeaderStyle, data.get("header")),
            menu=_from_flat(MenuStyle, data.get("menu")),
            contenido=_from_flat(SectionStyle, data.get("contenido")),
            texto=_from_flat(TextStyle, data.get("texto")),
            ndc=_from_flat(NotesStyle, ndc.get("text")),
            footer=FooterStyle(
                section=_from_flat(FooterSectionStyle, footer.get("section")),
                button=_from_flat(FooterButtonStyle, footer.get("Button") or footer.get("button")),
            ),
        )


# === Components ===


@dataclass
class Credits:
    production: str = ""
    script: str = ""
    photography: str = ""
    art_design: str = ""
    sound_music: str = ""
    editing: str = ""
    cast: str = ""
    other_credits: str = ""


@dataclass
class DirectorBlock:
    name: str
    bio: str = ""
    image_url: str = ""


@dataclass
class HeaderComponent:
    title: str
    subhead: str
    background_image: str
    style: HeaderStyle

    def render(self) -> str:
        return f"""
	[et_pb_section fb_built="1" fullwidth="on" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
		[et_pb_fullwidth_header title="{escape(self.title)}" subhead="{escape(self.subhead)}" _builder_version="{BUILDER_VERSION}" title_font="{FONT_BOLD_CAPS}" title_text_color="{self.style.title_text_color}" subhead_text_color="{self.style.subhead_text_color}"  background_enable_color="off" use_background_color_gradient="on" background_color_gradient_stops="{COLOR_PRIMARY} 0%|#82d0d9 50%|{COLOR_SECONDARY} 100%" background_image="{self.background_image}" background_blend="multiply" width="99.9%" custom_padding="20%||2%||false|false" custom_padding_tablet="" custom_padding_phone="" custom_padding_last_edited="on|desktop" {GLOBAL_COLORS_INFO}]
		[/et_pb_fullwidth_header]
	[/et_pb_section]"""


@dataclass
class MenuComponent:
    style: MenuStyle

    def render(self) -> str:
        s = self.style
        return (
            f'[et_pb_section fb_built="1" fullwidth="on" _builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}]'
            f'[et_pb_fullwidth_menu menu_id="{s.menu_id}" active_link_color="{s.active_link_color}" '
            f'dropdown_menu_text_color="#ffcccc" mobile_menu_text_color="#ffcccc" cart_icon_color="#ffcccc" '
            f'search_icon_color="#ffcccc" menu_icon_color="#ffcccc" _builder_version="{BUILDER_VERSION}" '
            f'menu_font="Montserrat|700||on|||||" menu_text_color="{s.menu_text_color}" menu_font_size="12px" '
            f'background_color="{s.background_color}" background_image="{s.background_image}" background_blend="overlay" '
            f'text_orientation="right" menu_text_color_tablet="{COLOR_SECONDARY}" menu_text_color_phone="{COLOR_SECONDARY}" '
            f'menu_text_color_last_edited="on|desktop" {GLOBAL_COLORS_INFO} menu_text_color__hover_enabled="on|desktop" '
            f'menu_text_color__hover="{COLOR_LIGHT_GREEN}"][/et_pb_fullwidth_menu][/et_pb_section]'
        )


@dataclass
class CreditsComponent:
    directors: list[DirectorBlock]
    credits: Credits

    def render(self) -> str:
        out = []
        if self.directors:
            names = ", ".join(d.name for d in self.directors)
            out.append(f"<p><strong>Dirección:</strong> {escape(names)}</p>")

        if self.credits.other_credits:
            parts = [escape(p.strip()) for p in self.credits.other_credits.split(".") if p.strip()]
            if parts:
                out.append(f"<p>{'<br>'.join(parts)}</p>")
        else:
            for attr, label in CREDIT_LABELS:
                value = getattr(self.credits, attr)
                if value:
                    out.append(f"<p><strong>{label}:</strong> {escape(value)}</p>")

        return "".join(out)


@dataclass
class ContentNotesComponent:
    notes: str
    style: NotesStyle

    def render(self) -> str:
        if not self.notes:
            return ""
        s = self.style
        return f"""
	[et_pb_text disabled_on="{s.disabled_on}" _builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} text_font="{FONT_BOLD}" text_text_color="{s.color}" background_color="{s.background_color}" custom_margin="{MARGIN_STANDARD}" custom_padding="{PADDING_NOTES}" {BOX_SHADOW_PRESET3} box_shadow_color="{s.box_shadow_color}" locked="off" {GLOBAL_COLORS_INFO}]
		<p>
			<strong>NdC: <span data-sheets-root="1">{escape(self.notes)}</span><br />
			</strong>
		</p>
	[/et_pb_text]"""


@dataclass
class DirectorComponent:
    directors: list[DirectorBlock]
    style: TextStyle

    def render(self) -> str:
        blocks = []
        for director in self.directors:
            name = escape(director.name)
            blocks.append(
                f'[et_pb_row column_structure="1_2,1_2" _builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}]'
                f'[et_pb_column type="1_2" _builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}]'
                f'[et_pb_image src="{director.image_url}" alt="{name}" title_text="{name}" '
                f'_builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}][/et_pb_image][/et_pb_column]'
                f'[et_pb_column type="1_2" _builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}]'
                f'[et_pb_text _builder_version="{BUILDER_VERSION}" text_font_size="15px" link_font="{FONT_BOLD}" '
                f'link_text_color="{COLOR_CORAL}" header_4_font="{FONT_BOLD_CAPS}" '
                f'header_4_text_color="{self.style.header_4_text_color}" header_4_font_size="19px" '
                f'background_color="{COLOR_WHITE}" max_height_tablet="" max_height_phone="" '
                f'max_height_last_edited="on|desktop" custom_padding="{PADDING_DIRECTOR}" {BOX_SHADOW_PRESET3} '
                f'box_shadow_color="{self.style.box_shadow_color}" {GLOBAL_COLORS_INFO}]<h4><span>{name}</span></h4>\n'
                f'<p><span data-sheets-root="1">{escape(director.bio)}</span></p>[/et_pb_text][/et_pb_column][/et_pb_row]'
            )
        return "".join(blocks)


@dataclass
class GalleryComponent:
    media_ids: str

    def render(self) -> str:
        return f"""
	[et_pb_row _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
		[et_pb_column type="4_4" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
			[et_pb_gallery gallery_ids="{self.media_ids}" fullwidth="on" _builder_version="{BUILDER_VERSION}" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}]
			[/et_pb_gallery]
		[/et_pb_column]
	[/et_pb_row]"""


@dataclass
class MainContentComponent:
    credits: CreditsComponent
    notes: ContentNotesComponent
    synopsis: str
    directors: DirectorComponent
    gallery: GalleryComponent
    section_style: SectionStyle
    text_style: TextStyle

    def _text_attrs(self) -> str:
        return (
            f'_builder_version="{BUILDER_VERSION}" text_font_size="15px" header_4_font="{FONT_BOLD_CAPS}" '
            f'header_4_text_color="{self.text_style.header_4_text_color}" header_4_font_size="19px" '
            f'background_color="{COLOR_WHITE}"'
        )

    def render(self) -> str:
        sec = self.section_style
        shadow = f'custom_padding="{PADDING_STANDARD}" {BOX_SHADOW_PRESET3} box_shadow_color="{self.text_style.box_shadow_color}" {GLOBAL_COLORS_INFO}'
        return f"""
	[et_pb_section fb_built="1" _builder_version="{BUILDER_VERSION}" background_color="{sec.background_color}" use_background_color_gradient="on" background_color_gradient_stops="{sec.background_color_gradient_stops}" background_color_gradient_start="{sec.background_color_gradient_start}" background_color_gradient_end="{sec.background_color_gradient_end}"]
		[et_pb_row column_structure="1_2,1_2" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
			[et_pb_column type="1_2" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
				[et_pb_text {self._text_attrs()} max_height_tablet="" max_height_phone="" max_height_last_edited="on|desktop" {shadow}]
					<h4><strong>FICHA TÉCNICA:</strong></h4>
					{self.credits.render()}
				[/et_pb_text]
			[/et_pb_column]
			[et_pb_column type="1_2" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
				[et_pb_text {self._text_attrs()} {shadow}]
					<h4><strong>SINOPSIS:</strong></h4>
					<p class="p1">
						<span data-sheets-root="1">{escape(self.synopsis)}</span>
					</p>
				[/et_pb_text]
				{self.notes.render()}
			[/et_pb_column]
		[/et_pb_row]
		{self.directors.render()}
		{self.gallery.render()}
	[/et_pb_section]"""


@dataclass
class FooterComponent:
    button_text: str
    style: FooterStyle

    def _social_network(self, network: str, url: str) -> str:
        return (
            f'[et_pb_social_media_follow_network social_network="{network}" url="{url}" icon_color="{COLOR_PRIMARY}" '
            f'_builder_version="{BUILDER_VERSION}" background_color="{COLOR_SECONDARY}" {BACKGROUND_COLOR_ON} {GLOBAL_COLORS_INFO}]'
            f"\n\t\t\t\t\t\t{network}\n\t\t\t\t\t[/et_pb_social_media_follow_network]"
        )

    def render(self) -> str:
        sec = self.style.section
        btn = self.style.button
        social = "\n\t\t\t\t\t".join(
            self._social_network(network, url)
            for network, url in (("facebook", URL_FACEBOOK), ("instagram", URL_INSTAGRAM), ("twitter", URL_TWITTER))
        )
        return f"""
	[et_pb_section fb_built="1" admin_label="Section" _builder_version="{BUILDER_VERSION}" background_image="{sec.background_image}" background_position="{sec.background_position}" min_height="294.8px" custom_margin="||||false|false" custom_padding="||||false|false" global_module="{sec.global_module}" saved_tabs="all" {GLOBAL_COLORS_INFO}]
		[et_pb_row disabled_on="off|off|off" _builder_version="4.23.2" {PRESET_DEFAULT} min_height="164.4px" {GLOBAL_COLORS_INFO}]
			[et_pb_column type="4_4" _builder_version="4.17.4" {PRESET_DEFAULT} {GLOBAL_COLORS_INFO}]
				[et_pb_button button_url="{FOOTER_BUTTON_URL}" button_text="{escape(self.button_text)}" button_alignment="center" disabled_on="on|on|on" module_class="popmake-6500" _builder_version="{BUILDER_VERSION}" _dynamic_attributes="button_url" {PRESET_DEFAULT} {CUSTOM_BUTTON_ON} button_text_color="{btn.button_text_color}" button_bg_color="{COLOR_SECONDARY}" button_border_color="{btn.button_border_color}" button_font="{FONT_BOLD}" button_icon_color="{btn.button_icon_color}" {BOX_SHADOW_PRESET3} box_shadow_color="{btn.box_shadow_color}" disabled="on" {GLOBAL_COLORS_INFO} button_text_color__hover_enabled="on|desktop" button_text_color__hover="{COLOR_YELLOW}" button_bg_color__hover_enabled="on|hover" button_bg_color__hover="{COLOR_CORAL}" button_bg_enable_color__hover="on" button_border_color__hover_enabled="on|hover" button_border_color__hover="{COLOR_CORAL}"]
				[/et_pb_button]
			[/et_pb_column]
		[/et_pb_row]
		[et_pb_row column_structure="1_3,1_3,1_3" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
			[et_pb_column type="1_3" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
				[et_pb_social_media_follow icon_color="{COLOR_PRIMARY}" icon_color_tablet="{COLOR_PINK}" icon_color_phone="{COLOR_PINK}" icon_color_last_edited="on|tablet" _builder_version="{BUILDER_VERSION}" background_color="RGBA(255,255,255,0)" {CUSTOM_BUTTON_ON} button_text_color="{COLOR_PRIMARY}" button_bg_color="{COLOR_SECONDARY}" button_border_color="{COLOR_SECONDARY}" text_orientation="center" custom_margin="||||false|false" {GLOBAL_COLORS_INFO}]
					{social}
				[/et_pb_social_media_follow]
			[/et_pb_column]
			[et_pb_column type="1_3" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
				[et_pb_text _builder_version="{BUILDER_VERSION}" text_text_color="{COLOR_YELLOW}" link_font="{FONT_BOLD}" link_text_color="{COLOR_DARK}" header_text_color="{COLOR_DARK}" text_orientation="center" text_text_align="center" {GLOBAL_COLORS_INFO} link_text_color__hover_enabled="on|desktop"]
					<p><span style="color: {COLOR_DARK};"><strong><a href="mailto:{EMAIL_CONTACT}" target="_blank" rel="noopener noreferrer" style="color: {COLOR_DARK};">{EMAIL_CONTACT}</a></strong></span></p>
				[/et_pb_text]
			[/et_pb_column]
			[et_pb_column type="1_3" _builder_version="{BUILDER_VERSION}" {GLOBAL_COLORS_INFO}]
				[et_pb_search button_color="{COLOR_PRIMARY}" placeholder_color="{COLOR_PRIMARY}" _builder_version="{BUILDER_VERSION}" form_field_background_color="RGBA(255,255,255,0)" form_field_text_color="{COLOR_DARK}" form_field_focus_background_color="RGBA(255,255,255,0)" form_field_focus_text_color="{COLOR_DARK}" button_font="{FONT_EXTRA_BOLD}" button_text_color="{COLOR_SECONDARY}" button_font_size="12px" form_field_font_size="12px" background_color="rgba(0,0,0,0)" background_last_edited="on|phone" border_width_all="3px" border_color_all="{COLOR_PRIMARY}" {GLOBAL_COLORS_INFO} background__hover_enabled="on|desktop"]
				[/et_pb_search]
			[/et_pb_column]
		[/et_pb_row]
	[/et_pb_section]"""


class TemplateComposer:
    """Ordered list of components rendered into one document."""

    def __init__(self):
        self.components: list[Component] = []

    def add_component(self, component: Component) -> "TemplateComposer":
        self.components.append(component)
        return self

    def compose(self) -> str:
        return "".join(component.render() for component in self.components)
