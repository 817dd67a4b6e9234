import logging

import pandas as pd
import streamlit as st

from sportledger.config import ALL, APP_TITLE
from sportledger.errors import InvalidAmountError, SettingInUseError
from sportledger.models.settings import Settings
from sportledger.reports.export import ReportRequest, export_report
from sportledger.repositories.memory_repo import InMemoryLessonRepository, InMemorySettingsRepository
from sportledger.repositories.sheets_repo import SheetsLessonRepository, SheetsSettingsRepository
from sportledger.services import settings_editor as editor
from sportledger.services.aggregator import Breakdown
from sportledger.services.gsheets_client import get_spreadsheet
from sportledger.services.lesson_filter import InvoiceStatus
from sportledger.services.lesson_form import build_lesson, default_selection, quote
from sportledger.services.monthly import monthly_view
from sportledger.services.resolver import available_locations, lesson_labels, resolve_sport
from sportledger.services.secrets import load_app_config
from sportledger.ui.state import (
    KEY_AUTHENTICATED,
    KEY_CACHE_READY,
    KEY_CURRENT_MONTH,
    KEY_EDITING_LESSON_ID,
    KEY_EXPORT_BUSY,
    KEY_EXPORT_RESULT,
    KEY_LESSONS_CACHE,
    KEY_SETTINGS_CACHE,
    KEY_SETTINGS_DRAFT,
    clear_settings_widgets,
    init_state_if_missing,
    mark_cache_dirty,
    next_month,
    prev_month,
    set_export_busy,
    start_edit,
    stop_edit,
)
from sportledger.utils.amounts import format_eur, parse_amount
from sportledger.utils.dates import format_it_date, italian_month_label, month_bounds, parse_iso_date, today_local
from sportledger.utils.logger import setup_logger

st.set_page_config(page_title=APP_TITLE, layout="wide")

APP_CONFIG = load_app_config()
setup_logger(level=APP_CONFIG.log_level, log_file=APP_CONFIG.log_file)
logger = logging.getLogger("sportledger.app")

DEMO_MODE = not APP_CONFIG.is_configured


# -----------------------------
# Store
# -----------------------------
@st.cache_resource
def _sheets_repositories():
    sh = get_spreadsheet()
    cache = {}
    return SheetsLessonRepository(sh, cache), SheetsSettingsRepository(sh, cache)


def get_repositories():
    if not DEMO_MODE:
        return _sheets_repositories()
    # demo data lives only as long as the browser session
    if "_demo_repos" not in st.session_state:
        logger.info("Google Sheets not configured, starting a demo session")
        st.session_state["_demo_repos"] = (InMemoryLessonRepository(), InMemorySettingsRepository())
    return st.session_state["_demo_repos"]


def refresh_cache():
    lessons_repo, settings_repo = get_repositories()
    st.session_state[KEY_LESSONS_CACHE] = lessons_repo.list_lessons()
    st.session_state[KEY_SETTINGS_CACHE] = settings_repo.load_settings()
    st.session_state[KEY_CACHE_READY] = True


def current_lessons():
    return st.session_state[KEY_LESSONS_CACHE]


def current_settings() -> Settings:
    return st.session_state[KEY_SETTINGS_CACHE]


# -----------------------------
# Auth
# -----------------------------
def require_password():
    if DEMO_MODE or not APP_CONFIG.app_password:
        return
    if st.session_state.get(KEY_AUTHENTICATED):
        return

    with st.form("login"):
        pw = st.text_input("Password", type="password")
        ok = st.form_submit_button("Accedi")

    if not ok:
        st.stop()

    if pw == APP_CONFIG.app_password:
        st.session_state[KEY_AUTHENTICATED] = True
        st.rerun()
    else:
        st.error("Password errata")
        st.stop()


require_password()
init_state_if_missing()

if not st.session_state[KEY_CACHE_READY]:
    refresh_cache()

lessons = current_lessons()
settings = current_settings()
lessons_repo, settings_repo = get_repositories()


# -----------------------------
# Header
# -----------------------------
st.title(APP_TITLE)
if DEMO_MODE:
    st.warning("Modalità demo: i dati non vengono salvati e si perdono alla chiusura della pagina.")

month_first = st.session_state[KEY_CURRENT_MONTH]
h1, h2, h3, h4 = st.columns([1, 3, 1, 2])
with h1:
    st.button("◀", on_click=prev_month, key="prev_month_btn", help="Mese precedente")
with h2:
    st.subheader(italian_month_label(month_first))
with h3:
    st.button("▶", on_click=next_month, key="next_month_btn", help="Mese successivo")
with h4:
    if st.button("Aggiorna dati", key="reload_btn"):
        mark_cache_dirty()
        st.rerun()

summary = monthly_view(lessons, settings, month_first)

tab_summary, tab_lessons, tab_settings, tab_export = st.tabs(["Riepilogo", "Lezioni", "Impostazioni", "Esporta PDF"])


def _breakdown_card(title: str, data: Breakdown):
    st.markdown(f"**{title}**")
    if not data:
        st.caption("Nessun dato per questo mese.")
        return
    df = pd.DataFrame(data.sorted_items(), columns=["Voce", "Lezioni"])
    st.dataframe(df, hide_index=True, use_container_width=True)


with tab_summary:
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Lezioni Totali", summary.total_lessons)
    c2.metric("Utile Totale", format_eur(summary.total_income))
    c3.metric("Utile Fatturato", format_eur(summary.total_invoiced_income))
    c4.metric("Utile non Fatt.", format_eur(summary.total_not_invoiced_income))

    if settings.tax_rate > 0:
        n1, n2, _, _ = st.columns(4)
        n1.metric(f"Fatturato Netto ({settings.tax_rate:f}%)", format_eur(summary.total_invoiced_income_net))
        n2.metric("Totale Netto", format_eur(summary.total_income_net))

    b1, b2, b3 = st.columns(3)
    with b1:
        _breakdown_card("Lezioni per Sport", summary.lessons_by_sport)
    with b2:
        _breakdown_card("Lezioni per Tipo", summary.lessons_by_lesson_type)
    with b3:
        _breakdown_card("Lezioni per Sede", summary.lessons_by_location)


# -----------------------------
# Lessons
# -----------------------------
LF_DATE, LF_SPORT, LF_TYPE, LF_LOCATION, LF_INVOICED = "lf_date", "lf_sport", "lf_type", "lf_location", "lf_invoiced"


def _reset_lesson_form():
    sport_id, type_id, loc_id = default_selection(current_settings())
    st.session_state[LF_DATE] = today_local()
    st.session_state[LF_SPORT] = sport_id
    st.session_state[LF_TYPE] = type_id
    st.session_state[LF_LOCATION] = loc_id
    st.session_state[LF_INVOICED] = False
    stop_edit()


def _load_lesson_into_form(lesson_id: str):
    lesson = next((l for l in current_lessons() if l.id == lesson_id), None)
    if lesson is None:
        return
    start_edit(lesson_id)
    st.session_state[LF_DATE] = lesson.date
    st.session_state[LF_SPORT] = lesson.sport_id
    st.session_state[LF_TYPE] = lesson.lesson_type_id
    st.session_state[LF_LOCATION] = lesson.location_id
    st.session_state[LF_INVOICED] = lesson.invoiced


def _on_sport_change():
    _, type_id, loc_id = default_selection(current_settings(), st.session_state[LF_SPORT])
    st.session_state[LF_TYPE] = type_id
    st.session_state[LF_LOCATION] = loc_id


def _submit_lesson():
    editing_id = st.session_state.get(KEY_EDITING_LESSON_ID)
    existing = next((l for l in current_lessons() if l.id == editing_id), None) if editing_id else None
    lesson = build_lesson(
        current_settings(),
        lesson_date=st.session_state[LF_DATE],
        sport_id=st.session_state[LF_SPORT],
        lesson_type_id=st.session_state[LF_TYPE],
        location_id=st.session_state[LF_LOCATION],
        invoiced=st.session_state[LF_INVOICED],
        existing=existing,
    )
    if existing is not None:
        lessons_repo.update_lesson(lesson)
    else:
        lessons_repo.add_lesson(lesson)
    _reset_lesson_form()
    mark_cache_dirty()


def _toggle_invoiced(lesson_id: str):
    lessons_repo.toggle_invoiced(lesson_id)
    mark_cache_dirty()


def _delete_lesson(lesson_id: str):
    lessons_repo.delete_lesson(lesson_id)
    if st.session_state.get(KEY_EDITING_LESSON_ID) == lesson_id:
        _reset_lesson_form()
    mark_cache_dirty()


with tab_lessons:
    if LF_SPORT not in st.session_state:
        _reset_lesson_form()

    editing = st.session_state.get(KEY_EDITING_LESSON_ID) is not None
    st.markdown(f"### {'Modifica Lezione' if editing else 'Nuova Lezione'}")

    if not settings.sports:
        st.info("Configura almeno uno sport nelle Impostazioni.")
    else:
        sport_ids = [s.id for s in settings.sports]
        if st.session_state[LF_SPORT] not in sport_ids:
            st.session_state[LF_SPORT] = sport_ids[0]
            _on_sport_change()
        selected_sport = resolve_sport(settings, st.session_state[LF_SPORT])
        type_ids = [lt.id for lt in selected_sport.lesson_types]
        loc_ids = [loc.id for loc in selected_sport.locations]
        if st.session_state[LF_TYPE] not in type_ids:
            st.session_state[LF_TYPE] = type_ids[0] if type_ids else ""
        if st.session_state[LF_LOCATION] not in loc_ids:
            st.session_state[LF_LOCATION] = loc_ids[0] if loc_ids else ""

        f1, f2, f3, f4 = st.columns(4)
        with f1:
            st.date_input("Data", key=LF_DATE, format="DD/MM/YYYY")
        with f2:
            st.selectbox(
                "Sport",
                sport_ids,
                key=LF_SPORT,
                format_func=lambda sid: resolve_sport(settings, sid).name,
                on_change=_on_sport_change,
            )
        with f3:
            names = {lt.id: lt.name for lt in selected_sport.lesson_types}
            if type_ids:
                st.selectbox("Tipo Lezione", type_ids, key=LF_TYPE, format_func=lambda i: names.get(i, i))
            else:
                st.caption("Nessun tipo di lezione configurato per questo sport.")
        with f4:
            loc_names = {loc.id: loc.name for loc in selected_sport.locations}
            if loc_ids:
                st.selectbox("Sede", loc_ids, key=LF_LOCATION, format_func=lambda i: loc_names.get(i, i))
            else:
                st.caption("Nessuna sede configurata per questo sport.")

        price, cost = quote(settings, st.session_state[LF_SPORT], st.session_state[LF_TYPE], st.session_state[LF_LOCATION])
        p1, p2, p3 = st.columns(3)
        p1.metric("Prezzo", format_eur(price))
        p2.metric("Costo", format_eur(cost))
        p3.metric("Utile", format_eur(price - cost))
        if editing:
            st.caption("Prezzo e costo salvati restano invariati se sport, tipo e sede non cambiano.")

        st.checkbox("Fatturata", key=LF_INVOICED)

        a1, a2, _ = st.columns([1, 1, 6])
        with a1:
            st.button(
                "Salva" if editing else "Aggiungi",
                type="primary",
                on_click=_submit_lesson,
                disabled=not (type_ids and loc_ids),
                key="submit_lesson_btn",
            )
        with a2:
            if editing:
                st.button("Annulla", on_click=_reset_lesson_form, key="cancel_edit_btn")

    st.divider()
    st.markdown(f"### Lezioni di {italian_month_label(month_first)}")
    if not summary.lessons:
        st.info("Nessuna lezione in questo mese.")

    for lesson in summary.lessons:
        labels = lesson_labels(lesson, settings)
        col1, col2, col3, col4, col5, col6 = st.columns([2, 4, 2, 2, 1, 1])
        col1.write(format_it_date(lesson.date))
        col2.write(f"**{labels.sport}** · {labels.lesson_type} · {labels.location}")
        col3.write(format_eur(lesson.profit))
        with col4:
            st.button(
                "Fatturata ✓" if lesson.invoiced else "Non Fatt.",
                key=f"toggle_{lesson.id}",
                on_click=_toggle_invoiced,
                args=(lesson.id,),
            )
        with col5:
            st.button("✏️", key=f"edit_{lesson.id}", on_click=_load_lesson_into_form, args=(lesson.id,), help="Modifica")
        with col6:
            with st.popover("🗑️", help="Elimina"):
                st.write("Eliminare questa lezione?")
                st.button("Elimina", key=f"delete_{lesson.id}", type="primary", on_click=_delete_lesson, args=(lesson.id,))


# -----------------------------
# Settings
# -----------------------------
def _draft() -> Settings:
    if st.session_state[KEY_SETTINGS_DRAFT] is None:
        st.session_state[KEY_SETTINGS_DRAFT] = current_settings()
    return st.session_state[KEY_SETTINGS_DRAFT]


def _edit(operation, **kwargs):
    """Apply one edit to the draft; errors are kept for display on the next run."""
    try:
        st.session_state[KEY_SETTINGS_DRAFT] = operation(_draft(), **kwargs)
        st.session_state.pop("settings_error", None)
    except SettingInUseError as exc:
        st.session_state["settings_error"] = f"Impossibile eliminare: {exc.kind} usato in {exc.lesson_count} lezioni."
    except (InvalidAmountError, KeyError) as exc:
        st.session_state["settings_error"] = str(exc)


def _edit_amount(operation, widget_key: str, **kwargs):
    raw = st.session_state.get(widget_key, "")
    try:
        value = parse_amount(raw)
    except InvalidAmountError as exc:
        st.session_state["settings_error"] = str(exc)
        return
    _edit(operation, **kwargs, **{"price" if operation is editor.set_price else "cost": value})


def _save_settings():
    settings_repo.save_settings(_draft())
    st.session_state[KEY_SETTINGS_DRAFT] = None
    mark_cache_dirty()


def _discard_settings():
    st.session_state[KEY_SETTINGS_DRAFT] = None
    st.session_state.pop("settings_error", None)
    clear_settings_widgets()


with tab_settings:
    draft = _draft()
    if st.session_state.get("settings_error"):
        st.error(st.session_state["settings_error"])

    st.number_input(
        "Aliquota tasse / ritenuta (%)",
        min_value=0.0,
        max_value=100.0,
        value=float(draft.tax_rate),
        step=0.5,
        key="tax_rate_input",
        on_change=lambda: _edit(editor.set_tax_rate, tax_rate=st.session_state["tax_rate_input"]),
    )

    for sport in draft.sports:
        sport_used = editor.is_sport_in_use(sport.id, lessons)
        with st.expander(sport.name or "(senza nome)", expanded=False):
            s1, s2 = st.columns([5, 1])
            with s1:
                st.text_input(
                    "Nome sport",
                    value=sport.name,
                    key=f"sport_name_{sport.id}",
                    on_change=lambda sid=sport.id: _edit(
                        editor.rename_sport, sport_id=sid, name=st.session_state[f"sport_name_{sid}"]
                    ),
                )
            with s2:
                st.button(
                    "Elimina sport",
                    key=f"rm_sport_{sport.id}",
                    disabled=sport_used,
                    help="Questo sport è usato in una o più lezioni" if sport_used else None,
                    on_click=_edit,
                    args=(editor.remove_sport,),
                    kwargs={"sport_id": sport.id, "lessons": lessons},
                )

            st.markdown("**Tipi di lezione e prezzi**")
            for lt in sport.lesson_types:
                lt_used = editor.is_lesson_type_in_use(sport.id, lt.id, lessons)
                t1, t2, t3 = st.columns([4, 2, 1])
                with t1:
                    st.text_input(
                        "Tipo",
                        value=lt.name,
                        key=f"lt_name_{sport.id}_{lt.id}",
                        label_visibility="collapsed",
                        on_change=lambda sid=sport.id, lid=lt.id: _edit(
                            editor.rename_lesson_type,
                            sport_id=sid,
                            lesson_type_id=lid,
                            name=st.session_state[f"lt_name_{sid}_{lid}"],
                        ),
                    )
                with t2:
                    price_key = f"price_{sport.id}_{lt.id}"
                    st.text_input(
                        "Prezzo €",
                        value=str(sport.prices.get(lt.id, "")),
                        key=price_key,
                        label_visibility="collapsed",
                        on_change=_edit_amount,
                        args=(editor.set_price, price_key),
                        kwargs={"sport_id": sport.id, "lesson_type_id": lt.id},
                    )
                with t3:
                    st.button(
                        "🗑️",
                        key=f"rm_lt_{sport.id}_{lt.id}",
                        disabled=lt_used,
                        help="Questo tipo di lezione è in uso" if lt_used else "Elimina tipo lezione",
                        on_click=_edit,
                        args=(editor.remove_lesson_type,),
                        kwargs={"sport_id": sport.id, "lesson_type_id": lt.id, "lessons": lessons},
                    )
            st.button(
                "Aggiungi tipo",
                key=f"add_lt_{sport.id}",
                on_click=_edit,
                args=(editor.add_lesson_type,),
                kwargs={"sport_id": sport.id},
            )

            st.markdown("**Sedi e costi**")
            for loc in sport.locations:
                loc_used = editor.is_location_in_use(sport.id, loc.id, lessons)
                l1, l2 = st.columns([5, 1])
                with l1:
                    st.text_input(
                        "Sede",
                        value=loc.name,
                        key=f"loc_name_{sport.id}_{loc.id}",
                        label_visibility="collapsed",
                        on_change=lambda sid=sport.id, lid=loc.id: _edit(
                            editor.rename_location,
                            sport_id=sid,
                            location_id=lid,
                            name=st.session_state[f"loc_name_{sid}_{lid}"],
                        ),
                    )
                with l2:
                    st.button(
                        "🗑️",
                        key=f"rm_loc_{sport.id}_{loc.id}",
                        disabled=loc_used,
                        help="Questa sede è in uso" if loc_used else "Elimina sede",
                        on_click=_edit,
                        args=(editor.remove_location,),
                        kwargs={"sport_id": sport.id, "location_id": loc.id, "lessons": lessons},
                    )
                cost_cols = st.columns(max(len(sport.lesson_types), 1))
                for col, lt in zip(cost_cols, sport.lesson_types):
                    cost_key = f"cost_{sport.id}_{loc.id}_{lt.id}"
                    with col:
                        st.text_input(
                            f"Costo {lt.name}",
                            value=str(sport.costs.get(loc.id, {}).get(lt.id, "")),
                            key=cost_key,
                            on_change=_edit_amount,
                            args=(editor.set_cost, cost_key),
                            kwargs={"sport_id": sport.id, "location_id": loc.id, "lesson_type_id": lt.id},
                        )
            st.button(
                "Aggiungi sede",
                key=f"add_loc_{sport.id}",
                on_click=_edit,
                args=(editor.add_location,),
                kwargs={"sport_id": sport.id},
            )

    st.button("Aggiungi sport", key="add_sport_btn", on_click=_edit, args=(editor.add_sport,))

    g1, g2, _ = st.columns([1, 1, 6])
    with g1:
        st.button("Salva impostazioni", type="primary", key="save_settings_btn", on_click=_save_settings)
    with g2:
        st.button("Annulla modifiche", key="discard_settings_btn", on_click=_discard_settings)


# -----------------------------
# Export
# -----------------------------
INVOICE_LABELS = {
    InvoiceStatus.ALL: "Tutte",
    InvoiceStatus.INVOICED: "Fatt.",
    InvoiceStatus.NOT_INVOICED: "Non Fatt.",
}

with tab_export:
    busy = st.session_state[KEY_EXPORT_BUSY]
    first, last = month_bounds(month_first)

    e1, e2 = st.columns(2)
    with e1:
        start_date = st.date_input("Da", value=first, key=f"export_start_{month_first}", format="DD/MM/YYYY", disabled=busy)
    with e2:
        end_date = st.date_input("A", value=last, key=f"export_end_{month_first}", format="DD/MM/YYYY", disabled=busy)

    sport_options = [ALL] + [s.id for s in settings.sports]
    sport_id = st.selectbox(
        "Filtra Sport",
        sport_options,
        key="export_sport",
        format_func=lambda sid: "Tutti gli Sport" if sid == ALL else resolve_sport(settings, sid).name,
        disabled=busy,
    )
    locations = available_locations(settings, sport_id)
    location_options = [ALL] + [loc.id for loc in locations]
    if st.session_state.get("export_location") not in location_options:
        st.session_state["export_location"] = ALL
    loc_labels = {loc.id: loc.name for loc in locations}
    location_id = st.selectbox(
        "Filtra Sede",
        location_options,
        key="export_location",
        format_func=lambda lid: "Tutte le Sedi" if lid == ALL else loc_labels.get(lid, lid),
        disabled=busy or not locations,
    )
    invoice_filter = st.radio(
        "Tipo Lezioni",
        list(INVOICE_LABELS),
        format_func=INVOICE_LABELS.get,
        horizontal=True,
        key="export_invoice_filter",
        disabled=busy,
    )
    include_net = st.checkbox("Mostra dettagli Netto (Tasse) nel PDF", value=True, key="export_net", disabled=busy)

    st.button("Genera PDF", type="primary", disabled=busy, on_click=set_export_busy, key="export_btn")

    if busy:
        request = ReportRequest(
            start_date=parse_iso_date(start_date) or first,
            end_date=parse_iso_date(end_date) or last,
            invoice_filter=invoice_filter,
            sport_id=sport_id,
            location_id=location_id,
            include_net_details=include_net,
        )
        with st.spinner("Attendere..."):
            st.session_state[KEY_EXPORT_RESULT] = export_report(lessons, settings, request)
        st.session_state[KEY_EXPORT_BUSY] = False
        st.rerun()

    result = st.session_state[KEY_EXPORT_RESULT]
    if result is not None:
        if result.ok:
            st.success(f"{result.lesson_count} lezioni, {result.page_count} pagine.")
            st.download_button(
                "Scarica PDF",
                data=result.content,
                file_name=result.filename,
                mime="application/pdf",
                key="download_pdf_btn",
            )
        else:
            st.error(result.error)
