from datetime import date
from typing import List

from content_intelligence.models import Document, EntityMention


def scenario_corpus() -> List[Document]:
    """Two Thailand posts and one Colombia post."""
    return [
        Document(
            id="bangkok-street-food",
            title="Bangkok Street Food Guide",
            excerpt="Where to eat street food in Bangkok",
            content=("Bangkok is famous for street food. Thailand's night markets serve "
                     "pad thai, noodles and mango sticky rice at every corner."),
            tags=("Thailand", "food", "street-food"),
            entities=(EntityMention("Bangkok", "City"), EntityMention("Thailand", "Country")),
            location="Thailand",
            country_code="TH",
            published=date(2023, 5, 1),
            views=1200,
            category="food",
        ),
        Document(
            id="chiang-mai-temples",
            title="Chiang Mai Temples",
            excerpt="A slow walk through the temples of Chiang Mai",
            content=("Chiang Mai in northern Thailand has hundreds of temples. Visit Wat "
                     "Phra Singh early, respect the dress code and join a traditional ceremony."),
            tags=("Thailand", "temple", "culture"),
            entities=(EntityMention("Chiang Mai", "City"), EntityMention("Thailand", "Country")),
            location="Thailand",
            country_code="TH",
            published=date(2023, 6, 15),
            views=800,
            category="culture",
        ),
        Document(
            id="medellin-coffee-tour",
            title="Medellín Coffee Tour",
            excerpt="Coffee farms near Medellín",
            content=("A day trip from Medellín to a coffee farm in the Colombian hills. We "
                     "tasted fresh beans and learned how the harvest works."),
            tags=("Colombia", "coffee"),
            entities=(EntityMention("Medellín", "City"), EntityMention("Colombia", "Country")),
            location="Colombia",
            country_code="CO",
            published=date(2023, 4, 10),
            views=300,
            category="food",
        ),
    ]


def travel_corpus() -> List[Document]:
    """The scenario posts plus a handful that overlap across places and activities."""
    return scenario_corpus() + [
        Document(
            id="bangkok-night-markets",
            title="Bangkok Night Markets",
            excerpt="Street food and shopping after dark in Bangkok",
            content=("The night markets of Bangkok mix street food, cooking demos and "
                     "shopping. Eat grilled skewers, then explore the stalls by the river."),
            tags=("Thailand", "food", "night-market"),
            location="Thailand",
            country_code="TH",
            published=date(2023, 7, 2),
            views=950,
        ),
        Document(
            id="hanoi-street-food",
            title="Hanoi Street Food Guide",
            excerpt="A complete guide to eating pho and banh mi in Hanoi",
            content=("Hanoi street food starts at dawn. Pho stalls, banh mi carts and egg "
                     "coffee make Vietnam one of the best food cities. Eat where locals eat."),
            tags=("Vietnam", "food", "street-food"),
            location="Vietnam",
            country_code="VN",
            published=date(2023, 2, 20),
            views=640,
        ),
        Document(
            id="poon-hill-trek",
            title="Poon Hill Trek Guide",
            excerpt="How to plan the short trek from Pokhara",
            content=("The Poon Hill trek is a short mountain hike from Pokhara in Nepal. "
                     "Hiking days are easy and the sunrise over the mountain range is the reward."),
            tags=("Nepal", "trekking", "mountain"),
            location="Nepal",
            country_code="NP",
            published=date(2022, 11, 3),
            views=410,
        ),
        Document(
            id="annapurna-circuit",
            title="Annapurna Circuit Trek",
            excerpt="Three weeks of hiking around the Annapurna massif",
            content=("The Annapurna circuit trek in Nepal crosses Thorong La. Hiking the "
                     "mountain trail takes three weeks and teahouses make the adventure easy."),
            tags=("Nepal", "trekking", "mountain"),
            location="Nepal",
            country_code="NP",
            published=date(2022, 10, 12),
            views=720,
        ),
        Document(
            id="cartagena-beaches",
            title="Cartagena Beaches",
            excerpt="Island hopping from Cartagena",
            content=("Cartagena is the gateway to the Rosario islands. Boats leave for the "
                     "beach each morning and snorkeling on the reef is worth the trip."),
            tags=("Colombia", "beach", "island"),
            location="Colombia",
            country_code="CO",
            published=date(2023, 1, 8),
            views=0,
        ),
    ]
