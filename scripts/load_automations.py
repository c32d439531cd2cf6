#!/usr/bin/env python3
"""Load automation rules and FAQ entries into the record store."""
from typing import List, Tuple, Optional
import sys
import asyncio
from pathlib import Path
import json
from datetime import datetime, timedelta


project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))


from models.automation import AutomationRule
from models.faq import FaqEntry
from services.database import Database, DATABASE_URL
from services.rule_store import RuleStore
from services.faq_store import FaqStore


class AutomationLoader:
    """Read a seed file and upsert its FAQ entries and rules."""

    def __init__(self, seed_file: str = "data/automations.json", database: Optional[Database] = None):
        self.seed_file = Path(seed_file)
        if not self.seed_file.is_absolute():
            self.seed_file = project_root / self.seed_file
        self.database = database or Database(DATABASE_URL)
        self.database.create_schema()
        self.rule_store = RuleStore(self.database)
        self.faq_store = FaqStore(self.database)

    def read_seed(self) -> Tuple[List[FaqEntry], List[AutomationRule]]:
        with open(self.seed_file, 'r', encoding='utf-8') as f:
            payload = json.load(f)

        faqs = [FaqEntry.from_dict(item) for item in payload.get("faq", [])]

        # Seed order is match priority: space creation times so it survives storage
        base_time = datetime.now()
        rules = []
        for index, item in enumerate(payload.get("automations", [])):
            rule = AutomationRule.from_dict(item)
            if rule.created_at is None:
                rule.created_at = base_time + timedelta(milliseconds=index)
            rules.append(rule)
        return faqs, rules

    async def load(self) -> Tuple[int, int]:
        faqs, rules = self.read_seed()

        existing_faq_ids = {entry.id for entry in await self.faq_store.get_all()}
        faq_count = 0
        for entry in faqs:
            if entry.id in existing_faq_ids:
                await self.faq_store.update(entry.id, entry.question, entry.answer)
            else:
                await self.faq_store.add(entry)
            faq_count += 1

        for rule in rules:
            await self.rule_store.upsert(rule)

        return faq_count, len(rules)

    def print_summary(self, rules: List[AutomationRule]):
        print(f"\n Loaded {len(rules)} automations (match order):")
        for rule in rules:
            state = "on " if rule.enabled else "off"
            print(f"   - [{state}] {rule.name}: '{rule.trigger.keyword}' in {rule.trigger.location.value} -> {rule.action.type.value}")


def main(seed_file: str = "data/automations.json"):
    print(" Loading automations...\n")

    loader = AutomationLoader(seed_file)
    if not loader.seed_file.exists():
        print(f" Seed file not found: {loader.seed_file}")
        return False

    try:
        faq_count, rule_count = asyncio.run(loader.load())
    except (ValueError, KeyError) as e:
        print(f" Invalid seed file: {e}")
        return False

    print(f" {faq_count} FAQ entries loaded")
    loader.print_summary(asyncio.run(loader.rule_store.list()))

    print("\n Automation loading completed successfully!")
    return rule_count > 0

if __name__ == "__main__":
    success = main(*sys.argv[1:2])
    sys.exit(0 if success else 1)
