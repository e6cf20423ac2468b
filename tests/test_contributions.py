from exam_vault.modules.contributions.aggregator import rank_contributors


def test_rank_counts_only_approved_papers(db, make_user, make_paper):
    make_user("top@x.com", name="Top Contributor", image="https://img/top")
    for _ in range(3):
        make_paper(approved=True, uploaded_by="top@x.com")
    make_paper(approved=True, uploaded_by="ghost@x.com")
    make_paper(approved=False, uploaded_by="ghost@x.com")
    make_paper(approved=False, uploaded_by="pending@x.com")

    ranked = rank_contributors(db)

    assert [(c.rank, c.email, c.count) for c in ranked] == [(1, "top@x.com", 3), (2, "ghost@x.com", 1)]
    assert ranked[0].name == "Top Contributor"
    assert ranked[0].first_name == "Top"
    assert ranked[0].image == "https://img/top"
    # no user record behind this uploader
    assert ranked[1].name == "ghost"
    assert ranked[1].image is None


def test_rank_truncates_to_limit(db, make_paper):
    for email in ("a@x.com", "b@x.com", "c@x.com"):
        make_paper(approved=True, uploaded_by=email)
    assert len(rank_contributors(db, limit=2)) == 2


def test_contributions_endpoint(client, make_paper):
    make_paper(approved=True, uploaded_by="solo@x.com")

    body = client.get("/api/contributions").json()

    assert body["success"] is True
    assert body["contributors"] == [
        {"rank": 1, "email": "solo@x.com", "count": 1, "name": "solo", "firstName": "solo", "image": None}
    ]
