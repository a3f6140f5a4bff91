"""
Pattern Catalog -- Compression & Comfort Socks
===============================================

Declarative taxonomy used by the review classifier. Each category is a
name, a layer and an ordered list of regex rules; a review belongs to a
category when ANY rule matches ANYWHERE in its text (case-insensitive).
Categories are independent booleans, so rule and category order never
change membership -- order only fixes the output axis.

TWO-LAYER SEGMENTATION MODEL:
    identity   -- narrow, WHO the reviewer is (nurse, senior, diabetic...)
                  only triggered by explicit self-identification.
    motivation -- broad, WHY they bought (comfort, pain relief, style...)

Bump CATALOG_VERSION whenever a rule, category or product mapping changes.
Analyses record the version they were computed with.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .review_models import CatalogError, Layer, SEGMENT_LAYERS

logger = logging.getLogger(__name__)

CATALOG_VERSION = "2.3.1"

DEFAULT_PRODUCT = "Other"


@dataclass(frozen=True)
class CategoryDefinition:
    """One named category and the rules that trigger it."""
    name: str
    layer: Layer
    rules: Tuple[str, ...]
    label: str = ""
    key_term: str = ""
    _compiled: Tuple[re.Pattern, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise CatalogError("Category name cannot be empty")
        if not self.rules:
            raise CatalogError(f"Category '{self.name}' has no rules")
        if not self.label:
            object.__setattr__(self, "label", self.name.replace("_", " ").title())
        if not self.key_term:
            object.__setattr__(self, "key_term", self.name.replace("_", " "))
        compiled = []
        for rule in self.rules:
            try:
                compiled.append(re.compile(rule, re.IGNORECASE))
            except re.error as e:
                raise CatalogError(f"Invalid rule for '{self.name}': {rule!r} ({e})") from e
        object.__setattr__(self, "_compiled", tuple(compiled))

    def matches(self, text: str) -> bool:
        """True if any rule matches anywhere in text."""
        return any(p.search(text) for p in self._compiled)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "layer": self.layer.value,
            "label": self.label,
            "key_term": self.key_term,
            "rules": list(self.rules),
        }


# =============================================================================
# PAIN POINTS
# =============================================================================

PAIN_RULES: Dict[str, Dict] = {
    "sock_marks": {
        "key_term": "mark",
        "rules": [
            r"\b(mark|indent|ring|line|groove|imprint|red ring)\b",
            r"\b(left.{0,10}mark|dig(ging)? in)\b",
        ],
    },
    "swelling": {
        "key_term": "swell",
        "rules": [r"\b(swell|swollen|edema|puff|bloat|retention|fluid|lymphedema|water retention)\b"],
    },
    "tightness": {
        "key_term": "tight",
        "rules": [r"\b(tight|squeeze|constrict|tourniquet|cutting off|strangle|binding|dig into)\b"],
    },
    "hard_to_put_on": {
        "key_term": "hard to put on",
        "rules": [
            r"\b(hard to (put|get) on|can't get on|need help)\b",
            r"\b(struggle|difficult|fight me|battle)\b",
        ],
    },
    "falling_down": {
        "key_term": "fall down",
        "rules": [r"\b(fall down|slide|slip|bunch|roll down|won't stay)\b"],
    },
    "circulation": {
        "key_term": "circulation",
        "rules": [r"\b(circulation|numb|purple|blood flow|tingling|pins and needles)\b"],
    },
    "pain": {
        "key_term": "pain",
        "rules": [r"\b(pain|ache|achy|hurt|sore|cramp|throb|burning|burning sensation|tender)\b"],
    },
    "neuropathy": {
        "key_term": "neuropathy",
        "rules": [r"\b(neuropathy|nerve|nerve damage|nerve pain)\b"],
    },
    "heavy_tired_legs": {
        "key_term": "heavy",
        "rules": [r"\b(heavy legs|legs? feel heavy|tired (feet|legs)|fatigued? (feet|legs))\b"],
    },
    "restless_legs": {
        "key_term": "restless",
        "rules": [r"\b(restless leg|can't sleep.{0,15}leg|leg.{0,10}at night)\b"],
    },
}

# =============================================================================
# BENEFITS
# =============================================================================

BENEFIT_RULES: Dict[str, Dict] = {
    "comfort": {
        "key_term": "comfort",
        "rules": [
            r"\b(comfort|comfortable|comfy|cozy)\b",
            r"\b(soft|cushion|plush|gentle|like a cloud|second skin|heavenly)\b",
        ],
    },
    "no_marks": {
        "key_term": "no mark",
        "rules": [r"\b(no mark|no indent|no ring|mark-free|without mark|no red|don't leave mark|doesn't leave)\b"],
    },
    "easy_application": {
        "key_term": "easy to put on",
        "rules": [
            r"\b(easy to (put|get|slip|pull) on|slip(s)? (right )?on|slides? on)\b",
            r"\b(no struggle|effortless|wide opening)\b",
        ],
    },
    "stays_up": {
        "key_term": "stay",
        "rules": [r"\b(stay(s)? up|don't fall|don't slide|stay(s)? in place|don't bunch|don't roll)\b"],
    },
    "style": {
        "key_term": "color",
        "rules": [
            r"\b(pattern|color|colorful|design|vibrant)\b",
            r"\b(cute|pretty|beautiful|stylish|fashion|look(s)? (good|great|nice)|trendy|compliment|attractive)\b",
        ],
    },
    "warmth": {
        "key_term": "warm",
        "rules": [r"\b(warm|thermal|heat|keeps? (my )?feet warm)\b"],
    },
    "fit": {
        "key_term": "fit",
        "rules": [r"\b(fit(s)?|perfect fit|true to size|fits? great|fits? (my|perfectly)|snug)\b"],
    },
    "quality": {
        "key_term": "quality",
        "rules": [r"\b(quality|durable|durability|well made|last(s)?|hold(s)? up|well constructed|premium|substantial)\b"],
    },
    "breathable": {
        "key_term": "breathab",
        "rules": [r"\b(breathab|moisture|wicking|keeps? (my )?feet dry|not sweaty|ventilat)"],
    },
    "not_medical_looking": {
        "key_term": "medical",
        "rules": [r"\b(don't look (like )?medical|doesn't look (like )?compress|not ugly|doesn't scream|no one can tell|wouldn't know)\b"],
    },
}

# =============================================================================
# TRANSFORMATION LANGUAGE
# =============================================================================

TRANSFORMATION_RULES: Dict[str, Dict] = {
    "game_changer": {"key_term": "game", "rules": [r"game.?changer"]},
    "finally": {"key_term": "finally", "rules": [r"\bfinally\b"]},
    "no_more": {"key_term": "no more", "rules": [r"no more"]},
    "love": {"key_term": "love", "rules": [r"\blove\b"]},
    "best_ever": {"key_term": "best", "rules": [r"best (socks?|I've|I have|pair) ever"]},
    "life_changing": {"key_term": "life", "rules": [r"life.?chang", r"changed my life"]},
    "wish_found_sooner": {
        "key_term": "wish",
        "rules": [r"wish.*(found|knew|tried|bought|discovered).*(sooner|earlier|before|years ago)"],
    },
    "miracle": {
        "key_term": "miracle",
        "rules": [r"\b(miracle|godsend|god.?send|blessing|saved my|saved me)\b"],
    },
    "never_going_back": {
        "key_term": "never",
        "rules": [r"\b(never going back|won't go back|never buy another|only (socks?|brand|ones?))\b"],
    },
    "cant_live_without": {
        "key_term": "without",
        "rules": [r"\b(can't live without|can't do without|essential|necessity|must.?have)\b"],
    },
    "percent_improvement": {
        "key_term": "%",
        "rules": [r"\d+%\s*(less|more|better|reduction|improvement)"],
    },
}

# =============================================================================
# LAYER 1: IDENTITY SEGMENTS (narrow -- WHO they are)
# =============================================================================

IDENTITY_SEGMENT_RULES: Dict[str, Dict] = {
    "healthcare_worker": {
        "label": "Healthcare Worker",
        "key_term": "nurse",
        "rules": [
            r"\b(nurse|nursing|hospital|healthcare|CNA|scrubs)\b",
            r"\b(12[- ]?hour shift|medical (staff|professional)|in the (ER|OR|ICU)|on rounds)\b",
        ],
    },
    "caregiver_gift_buyer": {
        "label": "Caregiver / Gift Buyer",
        "key_term": "gift",
        "rules": [
            r"\b(bought (for|these for)|got (these|them) for|for (him|her)|surprise(d)? (them|him|her))\b",
            r"\bmy (mom|mother|dad|father|husband|wife|parent|grandm|grandp|grandfather|grandmother)\b",
            r"\b(gift|stocking stuffer|(christmas|birthday|mother'?s?|father'?s?) (day )?gift|perfect gift)\b",
        ],
    },
    "diabetic_neuropathy": {
        "label": "Diabetic / Neuropathy",
        "key_term": "diabet",
        "rules": [
            r"\b(diabeti[cs]?|diabetes|blood sugar|type [12]|A1C|sugar level|insulin)\b",
            r"\b(neuropathy|nerve (damage|pain))\b",
        ],
    },
    "standing_worker": {
        "label": "Standing Worker",
        "key_term": "on my feet",
        "rules": [
            r"\b(stand(ing)? all day|on (my|your|their) feet|behind the counter|concrete floor)\b",
            r"\b(retail|teacher|teaching|warehouse|factory|delivery|hairstylist|stylist|waitress|waiter|server|cashier)\b",
            r"\b(bartend|barista)",
        ],
    },
    "accessibility_mobility": {
        "label": "Accessibility / Mobility",
        "key_term": "mobility",
        "rules": [
            r"\b(paralyzed|wheelchair|limited mobility|range of motion|can't (bend|reach)|sock aid)\b",
            r"\bparalys",
            r"\b(arthritis|rheumatoid|hip (issue|problem|replacement)|knee replacement|bad (back|knee|hip))\b",
            r"\b(fibromyalgia|fibro|lupus|gout|sciatica|stenosis)\b",
        ],
    },
    "traveler": {
        "label": "Traveler",
        "key_term": "travel",
        "rules": [
            r"\b(travel|flight|airplane|aeroplane|vacation|trip|hotel|airport|flying|flew|cruise)\b",
            r"\b(long (flight|drive)|road trip)\b",
        ],
    },
    "senior": {
        "label": "Senior",
        "key_term": "senior",
        "rules": [
            r"\b(([5-9]\d|1\d{2})[- ]?(year|yr)[- ]?old)\b",
            r"\b(elderly|senior|aging|getting older|at my age|older (adult|person|gentleman|lady|woman|man))\b",
        ],
    },
    "pregnant_postpartum": {
        "label": "Pregnant / Postpartum",
        "key_term": "pregnan",
        "rules": [r"\b(pregnan|expecting|maternity|postpartum|post-?partum|baby bump|trimester|prenatal)"],
    },
    "medical_therapeutic": {
        "label": "Medical / Therapeutic",
        "key_term": "doctor",
        "rules": [
            r"\b(doctor (recommended|told|said|prescribed)|physician|podiatrist|prescribed)\b",
            r"\b(varicose|spider vein|vericose|DVT|blood clot|deep vein|lymphedema|edema|heart (condition|failure))\b",
            r"\b(post[- ]?surg|after (my )?surgery|post[- ]?op|chemo|chemotherapy|wound care|ulcer|dialysis)",
            r"\b(mmHg|compression level|medical[- ]?grade|physical therapy|PT|rehab)\b",
        ],
    },
}

# =============================================================================
# LAYER 2: MOTIVATION SEGMENTS (broad -- WHY they buy)
# =============================================================================

MOTIVATION_SEGMENT_RULES: Dict[str, Dict] = {
    "comfort_seeker": {
        "label": "Comfort Seeker",
        "key_term": "comfort",
        "rules": [
            r"\b(comfort|comfortable|soft|cozy|cushion|plush|comfy|gentle|like a cloud|second skin|heavenly)\b",
            r"\bbreathab",
            r"\b(baby soft|silky|pamper|like butter|feels? (great|amazing|wonderful|incredible|fantastic))\b",
            r"\b(forget I'm wearing|don't (even )?feel|like wearing nothing|most comfortable|so soft)\b",
            r"\b(not itchy|no itch|snug but not tight|don't pinch|no pressure)\b",
        ],
    },
    "pain_symptom_relief": {
        "label": "Pain & Symptom Relief",
        "key_term": "pain",
        "rules": [
            r"\b(swell|swollen|pain|ache|achy|hurt|sore|cramp|throb|numb|tingling|burning)\b",
            r"\b(heavy legs|tired (feet|legs)|circulation|blood flow|stiff|inflammation|flare|acts? up|bother)\b",
            r"\b(pins and needles|heel pain|arch pain|plantar|planter|calf pain|restless leg|shooting pain)\b",
            r"\b(feet (were|are) killing|reduce.{0,10}(swelling|pain|pressure))\b",
        ],
    },
    "style_conscious": {
        "label": "Style Conscious",
        "key_term": "cute",
        "rules": [
            r"\b(cute|pretty|beautiful|stylish|fashion|trendy|sleek|modern|attractive|vibrant)\b",
            r"\b(love the (color|pattern|design)|fun (design|pattern)|look(s)? (good|great|nice)|eye.?catching)\b",
            r"\b(compliment|got compliment|people ask|bold (color|pattern)|professional look|variety of (color|pattern|style))\b",
            r"\b(not ugly|don't look (like )?medical|doesn't look (like )?compress|doesn't scream|no one can tell)\b",
            r"\b(not embarrass|actually look nice|wore them to (work|the office))\b",
        ],
    },
    "quality_value": {
        "label": "Quality & Value",
        "key_term": "quality",
        "rules": [
            r"\b(worth (every|the) (penny|price|money)|you get what you pay|investment|bang for|money well spent)\b",
            r"\b(well made|well-made|well constructed|premium|high quality|good quality|not flimsy|built to last)\b",
            r"\b(held up|holding up|after (several|many|dozens of) wash|still like new|durable|durability)\b",
            r"\b(don't wear out|no holes|last (a long time|forever)|didn't pill|no pilling|didn't shrink)\b",
            r"\b(color didn't fade|elastic held|didn't lose.{0,10}shape)\b",
            r"\b(better than|tried other|compared to)\b",
        ],
    },
    "daily_wear_convert": {
        "label": "Daily Wear Convert",
        "key_term": "every day",
        "rules": [
            r"\b(every ?day|daily|all day|all[- ]?day comfort|morning to night|Monday through Friday|work week)\b",
            r"\b(all I wear|only socks? I (wear|buy|use)|replaced all|threw out|go-?to|wardrobe staple|whole drawer)\b",
            r"\b(wear.{0,10}everything|reliable|never disappoints|can count on|grab a pair|in my rotation|enough pairs)\b",
            r"\b(no fuss|hassle ?free|just works|perfect for daily|around the house|for work|to the office)\b",
        ],
    },
    "skeptic_converted": {
        "label": "Skeptic Converted",
        "key_term": "skeptic",
        "rules": [
            r"\b(skeptic|sceptic|didn't (think|believe|expect)|wasn't sure|hesitant|thought it was (hype|gimmick))",
            r"\b(took a chance|figured I'?d try|gave it a shot|last resort|tried everything|nothing else worked)\b",
            r"\b(pleasantly surprised|pleasant surprise|to my surprise|blew me away|exceeded (my )?expectation|better than expected)",
            r"\b(proved me wrong|I was wrong|actually work|have to admit|I'll admit|I stand corrected|I'm a (convert|believer))",
            r"\b(glad I tried|should have tried sooner)\b",
        ],
    },
    "emotional_transformer": {
        "label": "Emotional Transformer",
        "key_term": "life",
        "rules": [
            r"\b(life.?chang|changed my life|game.?changer|miracle|godsend|god.?send|blessing|saved (my|me))",
            r"\b(gave me.{0,10}(life|back)|can (walk|sleep|move) again|no more pain|pain.?free|night and day)\b",
            r"\b(used to (dread|hate|struggle)|dreaded|now I can|now I'm able|for the first time in)\b",
            r"\b(I cried|made me cry|tears?|so grateful|grateful|thank (you|god))\b",
            r"\b(amazing difference|transformed|never going back|can't live without|essential|necessity|best thing)\b",
            r"\b(such relief|instant relief|freedom|gave me my|finally (found|a sock|something))\b",
        ],
    },
    "repeat_loyalist": {
        "label": "Repeat Loyalist",
        "key_term": "again",
        "rules": [
            r"\b(order(ed|ing)? (again|more)|back for more|(second|third|fourth|fifth) pair|buying more|stocking up)\b",
            r"\b(this time I (got|ordered)|already (have|own)|been buying.{0,10}(for years|for months))\b",
            r"\b(loyal customer|keep coming back|won't buy anything else|switched to these|never going back to)\b",
            r"\bmy (second|third|fourth|fifth|\d+(st|nd|rd|th)) order\b",
            r"\b(still (love|great)|just as good as|consistent quality|haven't changed|every few months)\b",
            r"\b(replacing my|wore.{0,10}(last|old) (ones?|pair)|time to restock|whole drawer)\b",
            r"\b(recommended to|told (my |every)|entire family|customer for life|brand loyal)",
        ],
    },
}

# Reviews with before/after language, surfaced as transformation stories.
STORY_RULES: Tuple[str, ...] = (
    r"\b(before|used to|finally|no more|now I|changed my|game.?changer|life.?chang|gave me|for the first time)\b",
)

# Product line resolution from a product handle, checked in order.
# "ankle-compression" must be tested before "compression".
PRODUCT_RULES: Tuple[Tuple[str, str], ...] = (
    ("easystretch", "EasyStretch"),
    ("ankle-compression", "Ankle Compression"),
    ("compression", "Compression"),
)

PRODUCT_LINES: Tuple[str, ...] = ("EasyStretch", "Compression", "Ankle Compression", DEFAULT_PRODUCT)


def _definitions(layer: Layer, table: Dict[str, Dict]) -> List[CategoryDefinition]:
    return [
        CategoryDefinition(
            name=name,
            layer=layer,
            rules=tuple(entry["rules"]),
            label=entry.get("label", ""),
            key_term=entry.get("key_term", ""),
        )
        for name, entry in table.items()
    ]


class PatternCatalog:
    """
    A versioned, immutable taxonomy.

    Holds every CategoryDefinition by layer, the transformation story rules
    and the product-line rules. Passed explicitly into the classifier and
    orchestrator so an analysis is reproducible against a known version.
    """

    def __init__(
        self,
        categories: Iterable[CategoryDefinition],
        version: str,
        story_rules: Iterable[str] = STORY_RULES,
        product_rules: Iterable[Tuple[str, str]] = PRODUCT_RULES,
        product_lines: Iterable[str] = PRODUCT_LINES,
        default_product: str = DEFAULT_PRODUCT,
    ):
        self.version = version
        self.default_product = default_product
        self._by_layer: Dict[Layer, Tuple[CategoryDefinition, ...]] = {}

        grouped: Dict[Layer, List[CategoryDefinition]] = {layer: [] for layer in Layer}
        for definition in categories:
            if not isinstance(definition.layer, Layer):
                raise CatalogError(f"Unknown layer for '{definition.name}': {definition.layer!r}")
            if any(d.name == definition.name for d in grouped[definition.layer]):
                raise CatalogError(
                    f"Duplicate category '{definition.name}' in layer '{definition.layer.value}'"
                )
            grouped[definition.layer].append(definition)

        segment_names = [d.name for layer in SEGMENT_LAYERS for d in grouped[layer]]
        if len(segment_names) != len(set(segment_names)):
            raise CatalogError("Segment names must be unique across identity and motivation layers")

        self._by_layer = {layer: tuple(defs) for layer, defs in grouped.items()}

        try:
            self._story_patterns = tuple(re.compile(r, re.IGNORECASE) for r in story_rules)
        except re.error as e:
            raise CatalogError(f"Invalid story rule: {e}") from e
        self.story_rules: Tuple[str, ...] = tuple(story_rules)
        self.product_rules: Tuple[Tuple[str, str], ...] = tuple(
            (keyword.lower(), product) for keyword, product in product_rules
        )

        lines = list(product_lines)
        if default_product not in lines:
            lines.append(default_product)
        self.product_lines: Tuple[str, ...] = tuple(lines)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def categories(self, layer: Layer) -> Tuple[CategoryDefinition, ...]:
        return self._by_layer.get(layer, ())

    @property
    def segments(self) -> Tuple[CategoryDefinition, ...]:
        """Identity segments first, then motivation, each in catalog order."""
        return self.categories(Layer.IDENTITY) + self.categories(Layer.MOTIVATION)

    def get(self, layer: Layer, name: str) -> Optional[CategoryDefinition]:
        for definition in self.categories(layer):
            if definition.name == name:
                return definition
        return None

    def order_of(self, layer: Layer, name: str) -> int:
        """Catalog position of a category, used for stable ordering."""
        for i, definition in enumerate(self.categories(layer)):
            if definition.name == name:
                return i
        return len(self.categories(layer))

    def is_story(self, text: str) -> bool:
        return any(p.search(text) for p in self._story_patterns)

    def categorize_product(self, handle: Optional[str]) -> str:
        """Resolve a product handle to a product line (first rule wins)."""
        if not handle:
            return self.default_product
        h = handle.lower()
        for keyword, product in self.product_rules:
            if keyword in h:
                return product
        return self.default_product

    def order_products(self, products: Iterable[str]) -> List[str]:
        """Known product lines in catalog order, unknown ones alphabetically after."""
        present = set(products)
        known = [p for p in self.product_lines if p in present]
        unknown = sorted(p for p in present if p not in self.product_lines)
        return known + unknown

    # -------------------------------------------------------------------------
    # Serialisation
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict:
        return {
            "version": self.version,
            "product_lines": list(self.product_lines),
            "default_product": self.default_product,
            "product_rules": [
                {"keyword": k, "product": p} for k, p in self.product_rules
            ],
            "story_rules": list(self.story_rules),
            "categories": [
                d.to_dict() for layer in Layer for d in self.categories(layer)
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PatternCatalog":
        """Build a catalog from its JSON representation."""
        if "version" not in data:
            raise CatalogError("Catalog document is missing 'version'")

        definitions = []
        for raw in data.get("categories", []):
            try:
                layer = Layer(raw["layer"])
            except (KeyError, ValueError) as e:
                raise CatalogError(f"Invalid layer in catalog entry {raw.get('name')!r}") from e
            definitions.append(CategoryDefinition(
                name=raw.get("name", ""),
                layer=layer,
                rules=tuple(raw.get("rules", ())),
                label=raw.get("label", ""),
                key_term=raw.get("key_term", ""),
            ))

        default_product = data.get("default_product", DEFAULT_PRODUCT)
        return cls(
            categories=definitions,
            version=str(data["version"]),
            story_rules=data.get("story_rules", STORY_RULES),
            product_rules=[
                (r["keyword"], r["product"]) for r in data.get("product_rules", [])
            ],
            product_lines=data.get("product_lines", [default_product]),
            default_product=default_product,
        )

    def __repr__(self) -> str:
        counts = ", ".join(f"{layer.value}={len(self.categories(layer))}" for layer in Layer)
        return f"PatternCatalog(version={self.version!r}, {counts})"


def default_catalog() -> PatternCatalog:
    """The built-in taxonomy at CATALOG_VERSION."""
    return PatternCatalog(
        categories=(
            _definitions(Layer.PAIN, PAIN_RULES)
            + _definitions(Layer.BENEFIT, BENEFIT_RULES)
            + _definitions(Layer.TRANSFORMATION, TRANSFORMATION_RULES)
            + _definitions(Layer.IDENTITY, IDENTITY_SEGMENT_RULES)
            + _definitions(Layer.MOTIVATION, MOTIVATION_SEGMENT_RULES)
        ),
        version=CATALOG_VERSION,
    )


def load_catalog(path: Union[str, Path]) -> PatternCatalog:
    """Load a catalog from a JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e

    catalog = PatternCatalog.from_dict(data)
    logger.info(f"Loaded pattern catalog {catalog.version} from {path}")
    return catalog
