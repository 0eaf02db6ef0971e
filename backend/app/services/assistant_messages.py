"""User-facing assistant phrases in Czech (default) and English."""
from __future__ import annotations

from typing import Dict, Tuple

DEFAULT_LOCALE = "cs"

CATALOG: Dict[str, Dict[str, str]] = {
    "cs": {
        "preview.habit_complete_choice": "Označím návyky jako dokončené ({scheduled} naplánovaných z {total} celkem)",
        "preview.habit_complete": "Označím {count} {noun} jako dokončené",
        "preview.step_complete": "Označím {count} {noun} jako hotové",
        "preview.create": 'Vytvořím {entity}: "{name}"',
        "preview.update": 'Upravím {entity} "{name}"',
        "preview.update_changes": 'Upravím {entity} "{name}": {changes}',
        "preview.error": "Nelze provést ({error})",
        "result.create": 'Vytvořil jsem {entity} "{name}".',
        "result.habit_complete": "Označil jsem {count} {noun} jako dokončené.",
        "result.habit_complete_failed": " {count} se nepodařilo označit.",
        "result.choice_defaulted": " Nebyla zvolena varianta, použil jsem všechny vybrané návyky.",
        "result.step_complete": "Označil jsem {count} {noun} jako hotové.",
        "result.update": 'Upravil jsem {entity} "{name}".',
        "result.update_changes": 'Upravil jsem {entity} "{name}": {changes}.',
        "error.invalid_instruction": "Chyba: Neplatná instrukce - chybí type nebo operation.",
        "error.missing_identity": "Chybí název {entity_genitive}",
        "error.not_found": "Nenašel jsem {entity} k úpravě",
        "error.metric_without_goal": "Metrika nemá přiřazený cíl",
        "error.metric_goal_failed": "Metriku nelze vytvořit, protože se nepodařilo vytvořit cíl",
        "error.unsupported": "Tuto akci zatím neumím provést ({type} / {operation})",
        "error.invalid_date": 'Neplatné datum "{value}"',
        "error.execution": "Chyba při provádění akce: {error}",
        "summary.all_succeeded": "Provedl jsem {count} {noun}.",
        "summary.mixed": "Provedl jsem {succeeded} {succeeded_noun}, {failed} {failed_noun} se nepodařilo.",
        "summary.all_failed": "Nepodařilo se provést žádnou akci.",
        "propose.default": "Připravil jsem následující změny:",
        "propose.invalid_json": "Nepodařilo se zpracovat odpověď. Zkuste to prosím znovu s jiným příkazem.",
        "propose.invalid_format": "Nepodařilo se zpracovat instrukce.",
    },
    "en": {
        "preview.habit_complete_choice": "Mark habits as done ({scheduled} scheduled of {total} total)",
        "preview.habit_complete": "Mark {count} {noun} as done",
        "preview.step_complete": "Mark {count} {noun} as done",
        "preview.create": 'Create {entity}: "{name}"',
        "preview.update": 'Update {entity} "{name}"',
        "preview.update_changes": 'Update {entity} "{name}": {changes}',
        "preview.error": "Cannot be done ({error})",
        "result.create": 'Created {entity} "{name}".',
        "result.habit_complete": "Marked {count} {noun} as done.",
        "result.habit_complete_failed": " {count} could not be marked.",
        "result.choice_defaulted": " No option was chosen, so all matched habits were used.",
        "result.step_complete": "Marked {count} {noun} as done.",
        "result.update": 'Updated {entity} "{name}".',
        "result.update_changes": 'Updated {entity} "{name}": {changes}.',
        "error.invalid_instruction": "Error: invalid instruction, type or operation is missing.",
        "error.missing_identity": "Missing {entity} name",
        "error.not_found": "Could not find the {entity} to update",
        "error.metric_without_goal": "The metric has no goal",
        "error.metric_goal_failed": "The metric was not created because its goal could not be created",
        "error.unsupported": "This action is not supported yet ({type} / {operation})",
        "error.invalid_date": 'Invalid date "{value}"',
        "error.execution": "Action failed: {error}",
        "summary.all_succeeded": "Completed {count} {noun}.",
        "summary.mixed": "Completed {succeeded} {succeeded_noun}, {failed} {failed_noun} failed.",
        "summary.all_failed": "No action could be completed.",
        "propose.default": "Here are the changes I prepared:",
        "propose.invalid_json": "I could not process the response. Please try again with a different command.",
        "propose.invalid_format": "I could not process the instructions.",
    },
}

ENTITY_NAMES: Dict[str, Dict[str, str]] = {
    "cs": {"goal": "cíl", "step": "krok", "habit": "návyk", "area": "oblast", "metric": "metriku"},
    "en": {"goal": "goal", "step": "step", "habit": "habit", "area": "area", "metric": "metric"},
}

ENTITY_GENITIVE: Dict[str, str] = {
    "goal": "cíle",
    "step": "kroku",
    "habit": "návyku",
    "area": "oblasti",
    "metric": "metriky",
}

# one / few (2-4) / many
NOUNS: Dict[str, Dict[str, Tuple[str, str, str]]] = {
    "cs": {
        "habit": ("návyk", "návyky", "návyků"),
        "step": ("krok", "kroky", "kroků"),
        "action": ("akci", "akce", "akcí"),
    },
    "en": {
        "habit": ("habit", "habits", "habits"),
        "step": ("step", "steps", "steps"),
        "action": ("action", "actions", "actions"),
    },
}

# (preview wording, result wording)
CHANGES: Dict[str, Dict[str, Tuple[str, str]]] = {
    "cs": {
        "assign_goal": ('přiřadím k cíli "{value}"', 'přiřadil k cíli "{value}"'),
        "assign_area": ('přiřadím k oblasti "{value}"', 'přiřadil k oblasti "{value}"'),
        "rename": ('změním název na "{value}"', 'změnil název na "{value}"'),
        "change_date": ('změním datum na "{value}"', 'změnil datum na "{value}"'),
        "change_description": ("změním popis", "změnil popis"),
        "set_field": ('nastavím {field} na "{value}"', 'nastavil {field} na "{value}"'),
    },
    "en": {
        "assign_goal": ('assign to goal "{value}"', 'assigned to goal "{value}"'),
        "assign_area": ('assign to area "{value}"', 'assigned to area "{value}"'),
        "rename": ('rename to "{value}"', 'renamed to "{value}"'),
        "change_date": ('change date to "{value}"', 'changed date to "{value}"'),
        "change_description": ("change description", "changed description"),
        "set_field": ('set {field} to "{value}"', 'set {field} to "{value}"'),
    },
}


class Messages:
    """Locale-bound accessor for assistant phrases."""

    def __init__(self, locale: str | None = None) -> None:
        normalized = (locale or DEFAULT_LOCALE).split("-")[0].lower()
        self.locale = normalized if normalized in CATALOG else DEFAULT_LOCALE

    def get(self, key: str, **kwargs) -> str:
        return CATALOG[self.locale][key].format(**kwargs)

    def entity(self, entity_type: str | None) -> str:
        return ENTITY_NAMES[self.locale].get(entity_type or "", entity_type or "?")

    def missing_identity(self, entity_type: str | None) -> str:
        if self.locale == "cs":
            return self.get("error.missing_identity", entity_genitive=ENTITY_GENITIVE.get(entity_type or "", "položky"))
        return self.get("error.missing_identity", entity=self.entity(entity_type))

    def noun(self, key: str, count: int) -> str:
        one, few, many = NOUNS[self.locale][key]
        if count == 1:
            return one
        if self.locale == "cs" and 2 <= count <= 4:
            return few
        return many

    def change(self, kind: str, *, past: bool = False, **kwargs) -> str:
        preview_text, result_text = CHANGES[self.locale][kind]
        return (result_text if past else preview_text).format(**kwargs)
